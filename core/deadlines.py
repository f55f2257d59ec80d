"""
Deadline tracking for a recognition attempt: initial silence, trailing silence, absolute timeout.

Pure time arithmetic over explicit inputs. Silence policies are disabled by a
negative threshold; the absolute timeout is disabled by any threshold <= 0.
"""
from dataclasses import dataclass
from typing import List, Union

Number = Union[int, float]

INITIAL_SILENCE = "initial_silence"
TRAILING_SILENCE = "trailing_silence"
ABSOLUTE_TIMEOUT = "absolute_timeout"


def initial_silence_exceeded(threshold_ms: int, total_silence_ms: int, heard_speech: bool) -> bool:
    """True once silence before any speech reaches threshold_ms."""
    return not heard_speech and threshold_ms >= 0 and total_silence_ms >= threshold_ms


def trailing_silence_exceeded(threshold_ms: int, total_silence_ms: int, heard_speech: bool) -> bool:
    """True once silence after speech reaches threshold_ms."""
    return heard_speech and threshold_ms >= 0 and total_silence_ms >= threshold_ms


def absolute_timeout_exceeded(threshold_s: Number, elapsed_s: Number) -> bool:
    """True once the attempt has lasted threshold_s seconds. Zero disables it."""
    return threshold_s > 0 and elapsed_s >= threshold_s


@dataclass(frozen=True)
class DeadlinePolicy:
    """Read-only view of one policy; `triggered` is always derived."""

    name: str
    threshold: Number
    elapsed: Number
    heard_speech: bool = False

    @property
    def triggered(self) -> bool:
        if self.name == INITIAL_SILENCE:
            return initial_silence_exceeded(self.threshold, self.elapsed, self.heard_speech)
        if self.name == TRAILING_SILENCE:
            return trailing_silence_exceeded(self.threshold, self.elapsed, self.heard_speech)
        if self.name == ABSOLUTE_TIMEOUT:
            return absolute_timeout_exceeded(self.threshold, self.elapsed)
        raise ValueError(f"Unknown deadline policy: {self.name}")


def evaluate_policies(
    init_silence_ms: int,
    max_silence_ms: int,
    abs_timeout_s: Number,
    total_silence_ms: int,
    elapsed_s: Number,
    heard_speech: bool,
) -> List[DeadlinePolicy]:
    """
    Build the three policies of a session for the current chunk.

    Args:
        init_silence_ms: Initial-silence threshold (ms, < 0 disables).
        max_silence_ms: Trailing-silence threshold (ms, < 0 disables).
        abs_timeout_s: Absolute timeout (s, <= 0 disables).
        total_silence_ms: Current consecutive silence reported by the VAD.
        elapsed_s: Seconds since the recognizer acknowledged the stream.
        heard_speech: Whether speech has been detected in this attempt.

    Returns:
        [initial_silence, trailing_silence, absolute_timeout] policies.
    """
    return [
        DeadlinePolicy(INITIAL_SILENCE, init_silence_ms, total_silence_ms, heard_speech),
        DeadlinePolicy(TRAILING_SILENCE, max_silence_ms, total_silence_ms, heard_speech),
        DeadlinePolicy(ABSOLUTE_TIMEOUT, abs_timeout_s, elapsed_s, heard_speech),
    ]
