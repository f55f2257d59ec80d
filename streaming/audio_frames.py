"""
PCM framing helpers for the WebSocket gateway.

Clients may send audio in payloads of any size; the session expects chunks of
roughly one telephony frame (20 ms). FrameSplitter re-frames the byte stream.
"""

from typing import List

from config import DEFAULT_SAMPLE_RATE

# 16-bit mono linear PCM
BYTES_PER_SAMPLE = 2
DEFAULT_FRAME_MS = 20


def bytes_to_duration_ms(num_bytes: int, sample_rate: int = DEFAULT_SAMPLE_RATE) -> float:
    """Convert raw audio byte count to duration in milliseconds."""
    if num_bytes <= 0:
        return 0.0
    return (num_bytes / (sample_rate * BYTES_PER_SAMPLE)) * 1000.0


def duration_ms_to_bytes(ms: float, sample_rate: int = DEFAULT_SAMPLE_RATE) -> int:
    """Convert duration in ms to a whole-sample byte count for 16-bit mono."""
    samples = int((ms / 1000.0) * sample_rate)
    return samples * BYTES_PER_SAMPLE


class FrameSplitter:
    """
    Accumulates arbitrary payloads and hands out fixed-size frames.

    - push() returns every complete frame now available, in order.
    - Leftover bytes wait for the next push(); flush() returns them at end of input.
    """

    def __init__(self, frame_ms: float = DEFAULT_FRAME_MS, sample_rate: int = DEFAULT_SAMPLE_RATE):
        """
        Args:
            frame_ms: Frame duration in milliseconds (20 ms = 320 bytes at 8 kHz).
            sample_rate: PCM sample rate in Hz.
        """
        self.frame_bytes = max(BYTES_PER_SAMPLE, duration_ms_to_bytes(frame_ms, sample_rate))
        self._pending = bytearray()
        self._total_pushed = 0

    def push(self, data: bytes) -> List[bytes]:
        if not data:
            return []
        self._pending.extend(data)
        self._total_pushed += len(data)
        frames = []
        while len(self._pending) >= self.frame_bytes:
            frames.append(bytes(self._pending[: self.frame_bytes]))
            del self._pending[: self.frame_bytes]
        return frames

    def flush(self) -> bytes:
        """Return and clear the incomplete tail (may be empty)."""
        tail = bytes(self._pending)
        self._pending.clear()
        return tail

    def total_pushed_bytes(self) -> int:
        """Total bytes ever pushed (logged when the connection ends)."""
        return self._total_pushed
