import pytest

from idverify.application.verification_orchestrator import VerificationOrchestrator
from idverify.infrastructure import config
from idverify.infrastructure.config import ConfigurationError, build_orchestrator, build_repository, get_thresholds
from idverify.infrastructure.storage.dynamodb_repository import DynamoVerificationRepository
from idverify.infrastructure.storage.memory_repository import InMemoryVerificationRepository

THRESHOLD_VARS = ("MIN_LIVENESS_CONFIDENCE", "FACE_SIMILARITY_THRESHOLD", "LIVENESS_AUDIT_IMAGES_LIMIT")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in THRESHOLD_VARS + ("VERIFICATION_STORE", "VERIFICATION_TABLE", "DOCUMENT_BUCKET"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(config, "_memory_repository", None)


def test_defaults_when_unset():
    t = get_thresholds()
    assert (t.liveness, t.similarity, t.audit_images_limit) == (90.0, 80.0, 3)


def test_blank_value_falls_back_to_default(monkeypatch):
    monkeypatch.setenv("MIN_LIVENESS_CONFIDENCE", "   ")
    assert get_thresholds().liveness == 90.0


def test_explicit_zero_is_honoured(monkeypatch):
    monkeypatch.setenv("MIN_LIVENESS_CONFIDENCE", "0")
    monkeypatch.setenv("LIVENESS_AUDIT_IMAGES_LIMIT", "0")
    t = get_thresholds()
    assert t.liveness == 0.0
    assert t.audit_images_limit == 0


def test_trailing_comment_is_ignored(monkeypatch):
    monkeypatch.setenv("FACE_SIMILARITY_THRESHOLD", "85.5  # stricter for prod")
    assert get_thresholds().similarity == 85.5


@pytest.mark.parametrize("value", ["ninety", "90%", "1e"])
def test_unparseable_value_is_an_error(monkeypatch, value):
    monkeypatch.setenv("MIN_LIVENESS_CONFIDENCE", value)
    with pytest.raises(ConfigurationError):
        get_thresholds()


def test_fractional_audit_image_limit_is_an_error(monkeypatch):
    monkeypatch.setenv("LIVENESS_AUDIT_IMAGES_LIMIT", "2.7")
    with pytest.raises(ConfigurationError):
        get_thresholds()


def test_whole_float_audit_image_limit_is_accepted(monkeypatch):
    monkeypatch.setenv("LIVENESS_AUDIT_IMAGES_LIMIT", "2.0")
    assert get_thresholds().audit_images_limit == 2


def test_out_of_range_value_is_an_error(monkeypatch):
    monkeypatch.setenv("FACE_SIMILARITY_THRESHOLD", "101")
    with pytest.raises(ConfigurationError):
        get_thresholds()


def test_repository_selection(monkeypatch):
    assert isinstance(build_repository(), DynamoVerificationRepository)

    monkeypatch.setenv("VERIFICATION_STORE", "memory")
    repo = build_repository()
    assert isinstance(repo, InMemoryVerificationRepository)
    assert build_repository() is repo

    monkeypatch.setenv("VERIFICATION_STORE", "redis")
    with pytest.raises(ConfigurationError):
        build_repository()


def test_table_name_from_env(monkeypatch):
    monkeypatch.setenv("VERIFICATION_TABLE", "OtherTable")
    assert build_repository().table_name == "OtherTable"


def test_orchestrator_requires_bucket():
    with pytest.raises(ConfigurationError):
        build_orchestrator()


def test_orchestrator_wiring(monkeypatch):
    monkeypatch.setenv("DOCUMENT_BUCKET", "docs")
    monkeypatch.setenv("VERIFICATION_STORE", "memory")
    monkeypatch.setenv("MIN_LIVENESS_CONFIDENCE", "75")
    orch = build_orchestrator()
    assert isinstance(orch, VerificationOrchestrator)
    assert orch.liveness_evaluator.min_confidence == 75.0
    assert orch.object_store.bucket == "docs"
