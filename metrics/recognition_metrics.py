"""
Recognition observability metrics.

Thread-safe counters and stop-latency samples shared by all sessions in the process.
Exposed via GET /metrics/recognition (JSON snapshot).
Sessions and the WebSocket gateway record into this module when it is passed to them.
"""

import threading
from collections import Counter, deque
from typing import Any, Dict

# ----- Shared state (module-level for singleton behavior) -----
_lock = threading.Lock()
_sessions_opened = 0
_active_sessions = 0
_speech_detected = 0
_protocol_failures = 0
_completions: Counter = Counter()  # reason -> count
_stop_latency_samples: deque = deque(maxlen=1000)  # last N stop round-trips (ms)


def record_session_open() -> None:
    """Call when a session is created on a channel."""
    with _lock:
        global _sessions_opened, _active_sessions
        _sessions_opened += 1
        _active_sessions += 1


def record_session_close() -> None:
    """Call when a session is destroyed."""
    with _lock:
        global _active_sessions
        _active_sessions = max(0, _active_sessions - 1)


def record_speech_detected() -> None:
    with _lock:
        global _speech_detected
        _speech_detected += 1


def record_completion(reason: str, stop_latency_ms: float) -> None:
    """Call when an attempt reaches DONE; reason is the deadline policy that fired."""
    with _lock:
        _completions[reason] += 1
        _stop_latency_samples.append(stop_latency_ms)


def record_protocol_failure() -> None:
    """Call when a start/audio/stop exchange fails or is rejected."""
    with _lock:
        global _protocol_failures
        _protocol_failures += 1


def get_snapshot() -> Dict[str, Any]:
    """
    Return a JSON-serializable snapshot of recognition metrics.
    Used by GET /metrics/recognition.
    """
    with _lock:
        samples = list(_stop_latency_samples)
        completions = dict(_completions)
        snapshot = {
            "sessions_opened": _sessions_opened,
            "active_sessions": _active_sessions,
            "speech_detected": _speech_detected,
            "protocol_failures": _protocol_failures,
        }
    n = len(samples)
    if n == 0:
        avg_ms = None
        p95_ms = None
    else:
        avg_ms = round(sum(samples) / n, 2)
        sorted_s = sorted(samples)
        idx = max(0, int(0.95 * n) - 1)
        p95_ms = round(sorted_s[idx], 2)
    snapshot.update({
        "completions": completions,
        "completed_total": sum(completions.values()),
        "avg_stop_latency_ms": avg_ms,
        "p95_stop_latency_ms": p95_ms,
        "stop_latency_sample_count": n,
    })
    return snapshot


def reset() -> None:
    """Zero every counter (tests and admin use)."""
    with _lock:
        global _sessions_opened, _active_sessions, _speech_detected, _protocol_failures
        _sessions_opened = 0
        _active_sessions = 0
        _speech_detected = 0
        _protocol_failures = 0
        _completions.clear()
        _stop_latency_samples.clear()
