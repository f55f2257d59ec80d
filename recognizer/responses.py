"""
Recognizer response model.

Field names on the wire follow the recognizer's response record:
result_code, result_message, utterance, intent, confidence, probability.
"""
import math
from dataclasses import dataclass
from typing import Any, Dict

# Streaming start is only acknowledged with this code
STATUS_ACCEPTED = 201


def _float(value: Any) -> float:
    """Parse a score field; missing, malformed and non-finite values become 0.0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class RecognizerResponse:
    status: int
    message: str = ""
    utterance: str = ""
    intent: str = ""
    confidence: float = 0.0
    probability: float = 0.0

    @property
    def accepted(self) -> bool:
        return self.status == STATUS_ACCEPTED

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "RecognizerResponse":
        """Parse a JSON body; missing text fields become "" and missing scores 0.0."""
        return cls(
            status=_int(data.get("result_code")),
            message=str(data.get("result_message") or ""),
            utterance=str(data.get("utterance") or ""),
            intent=str(data.get("intent") or ""),
            confidence=_float(data.get("confidence")),
            probability=_float(data.get("probability")),
        )
