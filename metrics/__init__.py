"""
Observability and recognition metrics.
"""

from metrics.recognition_metrics import (
    get_snapshot,
    record_session_open,
    record_session_close,
    record_speech_detected,
    record_completion,
    record_protocol_failure,
    reset,
)

__all__ = [
    "get_snapshot",
    "record_session_open",
    "record_session_close",
    "record_speech_detected",
    "record_completion",
    "record_protocol_failure",
    "reset",
]
