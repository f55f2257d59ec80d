"""
Voice activity detection adapter.

Turns a raw linear-PCM chunk into an is-silence verdict plus the running
consecutive-silence duration. The energy test itself is a pluggable classifier;
EnergySilenceClassifier is the default (mean absolute amplitude vs. threshold).
"""
from typing import Callable, Optional, Tuple

import numpy as np

from config import DEFAULT_SAMPLE_RATE, SILENCE_THRESHOLD

BYTES_PER_SAMPLE = 2

# classifier(samples) -> True when the samples are silence
SilenceClassifier = Callable[[np.ndarray], bool]


def pcm16_to_samples(chunk: bytes) -> np.ndarray:
    """Decode little-endian signed 16-bit PCM; a trailing odd byte is dropped."""
    usable = len(chunk) - (len(chunk) % BYTES_PER_SAMPLE)
    if usable <= 0:
        return np.zeros(0, dtype=np.int16)
    return np.frombuffer(chunk[:usable], dtype="<i2")


class EnergySilenceClassifier:
    """Silence when the mean absolute amplitude of the chunk is below `threshold`."""

    def __init__(self, threshold: int = SILENCE_THRESHOLD):
        self.threshold = threshold

    def __call__(self, samples: np.ndarray) -> bool:
        if samples.size == 0:
            return True
        # int32 so abs(-32768) does not wrap
        mean_abs = float(np.abs(samples.astype(np.int32)).mean())
        return mean_abs < self.threshold


class VoiceActivityDetector:
    """
    Per-session VAD state.

    classify() accumulates the duration of consecutive silent chunks and resets
    it to zero on any non-silent chunk. It never raises.
    """

    def __init__(
        self,
        classifier: Optional[SilenceClassifier] = None,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        threshold: int = SILENCE_THRESHOLD,
    ):
        """
        Args:
            classifier: Callable(samples) -> is_silence. Defaults to EnergySilenceClassifier(threshold).
            sample_rate: PCM sample rate in Hz, used to turn sample counts into milliseconds.
            threshold: Energy threshold for the default classifier.
        """
        self.classifier = classifier or EnergySilenceClassifier(threshold)
        self.sample_rate = max(1, int(sample_rate))
        self._total_silence_ms = 0

    @property
    def total_silence_ms(self) -> int:
        return self._total_silence_ms

    def chunk_duration_ms(self, num_samples: int) -> int:
        return num_samples * 1000 // self.sample_rate

    def classify(self, chunk: bytes) -> Tuple[bool, int]:
        """
        Classify one chunk.

        Returns:
            (is_silence, total_silence_ms) where total_silence_ms is the
            consecutive silence including this chunk (0 after a non-silent chunk).
        """
        samples = pcm16_to_samples(chunk or b"")
        is_silence = bool(self.classifier(samples))
        if is_silence:
            self._total_silence_ms += self.chunk_duration_ms(samples.size)
        else:
            self._total_silence_ms = 0
        return is_silence, self._total_silence_ms

    def reset(self) -> None:
        """Forget accumulated silence (called when a session starts listening)."""
        self._total_silence_ms = 0
