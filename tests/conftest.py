import pytest

from idverify.application.verification_orchestrator import VerificationOrchestrator
from idverify.domain.errors import CollaboratorError
from idverify.domain.value_objects import (
    DetectedFace,
    DocumentAnalysis,
    FaceQuality,
    ImageRef,
    LivenessSession,
    LivenessSessionResult,
    Thresholds,
)
from idverify.infrastructure.storage.memory_repository import InMemoryVerificationRepository

USER = "user-1"
DOC_KEY = f"users/{USER}/documents/abc-passport.jpg"

PASSPORT_LINES = [
    "PASSPORT",
    "Name: Jane Doe",
    "Date of Birth: 1990-01-31",
    "ID Number: P1234567",
]


def good_face(**quality):
    values = {"brightness": 100.0, "sharpness": 80.0}
    values.update(quality)
    return DetectedFace(confidence=99.9, quality=FaceQuality(**values))


class FakeAnalyzer:
    def __init__(self, analysis=None, error=None):
        self.analysis = analysis or DocumentAnalysis(lines=list(PASSPORT_LINES), faces=[good_face()])
        self.error = error
        self.calls = []

    def analyze(self, document: ImageRef) -> DocumentAnalysis:
        self.calls.append(document)
        if self.error:
            raise self.error
        return self.analysis


class FakeLiveness:
    def __init__(self, confidence=95.0, status="SUCCEEDED", reference=None, error=None):
        self.result = LivenessSessionResult(
            session_id="sess-1",
            status=status,
            confidence=confidence,
            reference_image=reference if reference is not None else ImageRef(
                key=f"liveness/{USER}/sess-1/reference.jpg", bucket="docs"),
        )
        self.error = error
        self.created = []
        self.fetched = []

    def create_session(self, user_id, audit_images_limit):
        self.created.append((user_id, audit_images_limit))
        return LivenessSession(session_id="sess-1", session_token=f"{user_id}-1700000000000")

    def get_session_result(self, session_id):
        self.fetched.append(session_id)
        if self.error:
            raise self.error
        return self.result


class FakeComparer:
    def __init__(self, candidates=(91.0,), error=None):
        self.candidates = list(candidates)
        self.error = error
        self.calls = []

    def compare(self, source, target, similarity_threshold):
        self.calls.append((source, target, similarity_threshold))
        if self.error:
            raise self.error
        return list(self.candidates)


class FakeObjectStore:
    def __init__(self, objects=None):
        self.objects = objects if objects is not None else {f"liveness/{USER}/sess-1/reference.jpg": b"\xff\xd8\xffref"}
        self.calls = []

    def fetch(self, ref: ImageRef) -> bytes:
        self.calls.append(ref)
        if ref.key not in self.objects:
            raise CollaboratorError("storage", f"NoSuchKey: {ref.key}")
        return self.objects[ref.key]


@pytest.fixture
def repository():
    return InMemoryVerificationRepository()


@pytest.fixture
def make_orchestrator(repository):
    def _make(analyzer=None, liveness=None, comparer=None, object_store=None, thresholds=None):
        orch = VerificationOrchestrator(
            repository=repository,
            object_store=object_store or FakeObjectStore(),
            analyzer=analyzer or FakeAnalyzer(),
            liveness=liveness or FakeLiveness(),
            comparer=comparer or FakeComparer(),
            thresholds=thresholds or Thresholds(),
        )
        return orch
    return _make
