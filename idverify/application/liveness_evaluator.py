# idverify/application/liveness_evaluator.py
import math
from typing import Optional

from ..domain.value_objects import LivenessEvaluation


class LivenessEvaluator:
    """Judges an already-fetched liveness result against the minimum confidence (inclusive)."""

    def __init__(self, min_confidence: float = 90.0):
        self.min_confidence = float(min_confidence)

    def evaluate(self, confidence: Optional[float]) -> LivenessEvaluation:
        # Fails closed: no usable score means no pass.
        if confidence is None:
            return LivenessEvaluation(passed=False, confidence=None, threshold=self.min_confidence)
        value = float(confidence)
        if math.isnan(value):
            return LivenessEvaluation(passed=False, confidence=None, threshold=self.min_confidence)
        return LivenessEvaluation(
            passed=value >= self.min_confidence,
            confidence=value,
            threshold=self.min_confidence,
        )
