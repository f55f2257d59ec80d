"""
Tests for result assembly (score rule, N-best replication).
"""
import unittest

from core.results import Hypothesis, ResultsType, assemble_results, hypothesis_score
from recognizer.responses import RecognizerResponse


class TestHypothesisScore(unittest.TestCase):
    def test_confidence_times_probability(self):
        # 0.8 * 0.9 * 100 = 72
        self.assertEqual(hypothesis_score(0.8, 0.9), 72)

    def test_clamped(self):
        self.assertEqual(hypothesis_score(1.5, 1.0), 100)
        self.assertEqual(hypothesis_score(-0.2, 1.0), 0)

    def test_non_finite_scores_zero(self):
        self.assertEqual(hypothesis_score(float("nan"), 0.9), 0)
        self.assertEqual(hypothesis_score(float("inf"), 0.9), 0)
        self.assertEqual(hypothesis_score(0.8, float("-inf")), 0)


class TestAssembleResults(unittest.TestCase):
    def setUp(self):
        self.response = RecognizerResponse(
            status=200, utterance="segunda via", intent="boleto", confidence=0.8, probability=0.9
        )

    def test_single_best(self):
        results = assemble_results(self.response)
        self.assertEqual(results, [Hypothesis(72, "segunda via", "boleto")])

    def test_nbest_replicates_response(self):
        results = assemble_results(self.response, ResultsType.NBEST, max_nbest=3)
        self.assertEqual(len(results), 3)
        self.assertTrue(all(h == results[0] for h in results))

    def test_nbest_at_least_one(self):
        self.assertEqual(len(assemble_results(self.response, ResultsType.NBEST, max_nbest=0)), 1)

    def test_empty_text_is_valid(self):
        results = assemble_results(RecognizerResponse(status=200))
        self.assertEqual(results[0].text, "")
        self.assertEqual(results[0].grammar, "")
        self.assertEqual(results[0].score, 0)

    def test_to_dict(self):
        self.assertEqual(
            assemble_results(self.response)[0].to_dict(),
            {"score": 72, "text": "segunda via", "grammar": "boleto"},
        )


class TestRecognizerResponse(unittest.TestCase):
    def test_from_json_defaults(self):
        r = RecognizerResponse.from_json({"result_code": "201"})
        self.assertTrue(r.accepted)
        self.assertEqual((r.message, r.utterance, r.intent), ("", "", ""))
        self.assertEqual((r.confidence, r.probability), (0.0, 0.0))

    def test_from_json_non_finite_scores_become_zero(self):
        r = RecognizerResponse.from_json(
            {"result_code": 200, "confidence": float("nan"), "probability": "Infinity"}
        )
        self.assertEqual((r.confidence, r.probability), (0.0, 0.0))

    def test_from_json_malformed_score(self):
        r = RecognizerResponse.from_json({"result_code": 200, "confidence": "high", "probability": 0.5})
        self.assertEqual((r.confidence, r.probability), (0.0, 0.5))

    def test_ok_vs_accepted(self):
        self.assertTrue(RecognizerResponse(status=200).ok)
        self.assertFalse(RecognizerResponse(status=200).accepted)
        self.assertFalse(RecognizerResponse(status=500).ok)


if __name__ == "__main__":
    unittest.main()
