# idverify/application/face_matcher.py
from typing import Sequence

from ..domain.value_objects import MatchResult


class FaceMatcher:
    """
    Turns the ranked candidates of a face comparison into a decision.
    No candidates is an ordinary negative result: (matched=False, similarity=0).
    """

    def __init__(self, similarity_threshold: float = 80.0):
        self.similarity_threshold = float(similarity_threshold)

    def judge(self, candidates: Sequence[float]) -> MatchResult:
        if not candidates:
            return MatchResult(matched=False, similarity=0.0)
        # max() keeps the first of equal values, so ties go to the earliest candidate.
        best = max(float(c) for c in candidates)
        return MatchResult(matched=best >= self.similarity_threshold, similarity=best)
