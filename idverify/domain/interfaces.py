# idverify/domain/interfaces.py
from __future__ import annotations
from typing import Protocol, List, Optional, Union

from .value_objects import (
    DocumentAnalysis,
    DocumentPatch,
    FaceMatchPatch,
    ImageRef,
    LivenessPatch,
    LivenessSession,
    LivenessSessionResult,
    VerificationRecord,
)

# ---- Storage (ports) ----

class ObjectStore(Protocol):
    """Reads stored images (documents, liveness captures) by key or pointer."""
    def fetch(self, ref: ImageRef) -> bytes:
        ...

class VerificationRepository(Protocol):
    """Durable per-user verification records."""
    def get(self, user_id: str) -> Optional[VerificationRecord]:
        ...
    def put(self, record: VerificationRecord) -> None:
        ...
    def update(self, user_id: str, patch: Union[DocumentPatch, LivenessPatch, FaceMatchPatch]) -> VerificationRecord:
        """
        Field-merge of the patch into the stored record (created if absent).
        Untouched fields keep their stored values. Returns the merged record.
        """
        ...

# ---- External services (ports) ----

class DocumentAnalyzer(Protocol):
    def analyze(self, document: ImageRef) -> DocumentAnalysis:
        """Line-level text plus detected faces with quality metrics."""
        ...

class LivenessProvider(Protocol):
    def create_session(self, user_id: str, audit_images_limit: int) -> LivenessSession:
        ...
    def get_session_result(self, session_id: str) -> LivenessSessionResult:
        ...

class FaceComparer(Protocol):
    def compare(self, source: ImageRef, target: ImageRef, similarity_threshold: float) -> List[float]:
        """
        Similarity (0..100) of every candidate match, in the order returned
        by the service. Empty list when no face matched.
        """
        ...
