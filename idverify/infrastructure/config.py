# idverify/infrastructure/config.py
import os
import re

from ..domain.value_objects import Thresholds
from ..application.verification_orchestrator import VerificationOrchestrator

from .storage.s3_repositories import S3ObjectStore
from .storage.dynamodb_repository import DynamoVerificationRepository
from .storage.memory_repository import InMemoryVerificationRepository
from .analysis.textract_analyzer import TextractDocumentAnalyzer
from .liveness.rekognition_liveness import RekognitionLivenessClient
from .similarity.rekognition_adapter import RekognitionFaceComparer

_NUMBER = re.compile(r"^\s*([-+]?\d*\.?\d+(?:[eE][-+]?\d+)?)\s*(?:#.*)?$")


class ConfigurationError(ValueError):
    pass


def _env_number(var: str, default: float) -> float:
    """
    Unset or blank -> default. Anything else must parse ("0" stays 0);
    a trailing "# comment" is ignored.
    """
    raw = os.getenv(var)
    if raw is None or not raw.strip():
        return float(default)
    m = _NUMBER.match(raw)
    if not m:
        raise ConfigurationError(f"{var} is not a number: {raw!r}")
    return float(m.group(1))


def _env_int(var: str, default: int) -> int:
    value = _env_number(var, default)
    if not value.is_integer():
        raise ConfigurationError(f"{var} must be a whole number: {os.getenv(var)!r}")
    return int(value)


def _env_str(var: str, default: str) -> str:
    return str(os.getenv(var, default)).strip()


def get_thresholds() -> Thresholds:
    try:
        return Thresholds(
            liveness=_env_number("MIN_LIVENESS_CONFIDENCE", 90.0),
            similarity=_env_number("FACE_SIMILARITY_THRESHOLD", 80.0),
            audit_images_limit=_env_int("LIVENESS_AUDIT_IMAGES_LIMIT", 3),
        )
    except ValueError as ex:
        raise ConfigurationError(str(ex)) from ex


def document_bucket() -> str:
    bucket = _env_str("DOCUMENT_BUCKET", "")
    if not bucket:
        raise ConfigurationError("DOCUMENT_BUCKET is not set")
    return bucket


_memory_repository = None

def build_repository():
    global _memory_repository
    kind = _env_str("VERIFICATION_STORE", "dynamodb").lower()
    if kind == "memory":
        if _memory_repository is None:
            _memory_repository = InMemoryVerificationRepository()
        return _memory_repository
    if kind == "dynamodb":
        return DynamoVerificationRepository(_env_str("VERIFICATION_TABLE", "IdentityVerificationResults"))
    raise ConfigurationError(f"Unknown VERIFICATION_STORE: {kind}")


def build_orchestrator() -> VerificationOrchestrator:
    bucket = document_bucket()
    return VerificationOrchestrator(
        repository=build_repository(),
        object_store=S3ObjectStore(bucket),
        analyzer=TextractDocumentAnalyzer(
            bucket,
            min_face_confidence=_env_number("MIN_DOCUMENT_FACE_CONFIDENCE", 0.0),
        ),
        liveness=RekognitionLivenessClient(bucket),
        comparer=RekognitionFaceComparer(bucket),
        thresholds=get_thresholds(),
    )
