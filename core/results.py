"""
Result assembly: one terminal recognizer response -> ordered list of scored hypotheses.
"""
import enum
import math
from dataclasses import dataclass
from typing import List

from config import MAX_NBEST
from recognizer.responses import RecognizerResponse


class ResultsType(enum.Enum):
    NORMAL = "normal"
    NBEST = "nbest"


@dataclass(frozen=True)
class Hypothesis:
    score: int  # 0-100
    text: str
    grammar: str

    def to_dict(self) -> dict:
        return {"score": self.score, "text": self.text, "grammar": self.grammar}


def hypothesis_score(confidence: float, probability: float) -> int:
    """round(confidence * probability * 100), clamped to [0, 100]; non-finite products score 0."""
    raw = confidence * probability * 100
    if not math.isfinite(raw):
        return 0
    return max(0, min(100, int(round(raw))))


def assemble_results(
    response: RecognizerResponse,
    results_type: ResultsType = ResultsType.NORMAL,
    max_nbest: int = MAX_NBEST,
) -> List[Hypothesis]:
    """
    Map one stop response onto hypotheses.

    The recognizer returns a single hypothesis, so N-best mode repeats it
    max_nbest times rather than producing distinct alternatives.
    """
    best = Hypothesis(
        score=hypothesis_score(response.confidence, response.probability),
        text=response.utterance,
        grammar=response.intent,
    )
    if results_type is not ResultsType.NBEST:
        return [best]
    return [best] * max(1, max_nbest)
