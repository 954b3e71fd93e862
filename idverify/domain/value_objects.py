# idverify/domain/value_objects.py
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class DocumentType(str, Enum):
    PASSPORT = "PASSPORT"
    DRIVER_LICENSE = "DRIVER_LICENSE"
    NATIONAL_ID = "NATIONAL_ID"
    UNKNOWN = "UNKNOWN"


# ---------- Configuration ----------

@dataclass(frozen=True)
class Thresholds:
    liveness: float = 90.0        # 0..100, inclusive
    similarity: float = 80.0      # 0..100, inclusive
    audit_images_limit: int = 3   # 0..4 (Rekognition limit)

    def __post_init__(self):
        for name in ("liveness", "similarity"):
            value = getattr(self, name)
            if not 0.0 <= float(value) <= 100.0:
                raise ValueError(f"Threshold '{name}' must be within [0, 100], got {value}")
        if not 0 <= int(self.audit_images_limit) <= 4:
            raise ValueError(f"audit_images_limit must be within [0, 4], got {self.audit_images_limit}")


@dataclass(frozen=True)
class DocumentRules:
    required_fields: Tuple[str, ...] = ("name", "date of birth", "id number")
    min_brightness: float = 50.0
    max_brightness: float = 150.0
    min_sharpness: float = 50.0


# ---------- Collaborator outputs ----------

@dataclass(frozen=True)
class ImageRef:
    """
    Reference to an image for the comparison service: either an object key
    (optionally with an explicit bucket) or inline bytes.
    """
    key: Optional[str] = None
    bucket: Optional[str] = None
    data: Optional[bytes] = None

    @classmethod
    def from_bytes(cls, data: bytes) -> "ImageRef":
        return cls(data=data)

    @property
    def is_inline(self) -> bool:
        return self.data is not None


@dataclass(frozen=True)
class FaceQuality:
    brightness: Optional[float] = None
    sharpness: Optional[float] = None


@dataclass(frozen=True)
class DetectedFace:
    confidence: float = 0.0
    quality: FaceQuality = field(default_factory=FaceQuality)
    bounding_box: Optional[Dict[str, float]] = None


@dataclass(frozen=True)
class DocumentAnalysis:
    lines: List[str]
    faces: List[DetectedFace]

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclass(frozen=True)
class LivenessSession:
    session_id: str
    session_token: str


@dataclass(frozen=True)
class LivenessSessionResult:
    session_id: str
    status: str
    confidence: Optional[float] = None
    reference_image: Optional[ImageRef] = None


# ---------- Judgments ----------

@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: List[str]


@dataclass(frozen=True)
class LivenessEvaluation:
    passed: bool
    confidence: Optional[float]
    threshold: float


@dataclass(frozen=True)
class MatchResult:
    matched: bool
    similarity: float


# ---------- Verification record ----------

@dataclass
class VerificationRecord:
    user_id: str
    document_key: Optional[str] = None
    extracted_fields: Dict[str, str] = field(default_factory=dict)
    document_type: Optional[DocumentType] = None
    document_valid: Optional[bool] = None
    validation_errors: List[str] = field(default_factory=list)
    liveness_confidence: Optional[float] = None
    liveness_passed: Optional[bool] = None
    face_similarity: Optional[float] = None
    face_matched: Optional[bool] = None
    verification_completed: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "VerificationRecord":
        """Builds a record from its stored (camelCase) form."""
        def _float(v):
            return float(v) if v is not None else None

        doc_type = item.get("documentType")
        return cls(
            user_id=item["userId"],
            document_key=item.get("documentKey"),
            extracted_fields=dict(item.get("extractedFields") or {}),
            document_type=DocumentType(doc_type) if doc_type else None,
            document_valid=item.get("documentValid"),
            validation_errors=list(item.get("validationErrors") or []),
            liveness_confidence=_float(item.get("livenessConfidence")),
            liveness_passed=item.get("livenessPassed"),
            face_similarity=_float(item.get("faceSimilarity")),
            face_matched=item.get("faceMatched"),
            verification_completed=bool(item.get("verificationCompleted", False)),
            created_at=item.get("createdAt"),
            updated_at=item.get("updatedAt"),
        )

    def to_item(self) -> Dict[str, Any]:
        item = {
            "userId": self.user_id,
            "documentKey": self.document_key,
            "extractedFields": dict(self.extracted_fields),
            "documentType": self.document_type.value if self.document_type else None,
            "documentValid": self.document_valid,
            "validationErrors": list(self.validation_errors),
            "livenessConfidence": self.liveness_confidence,
            "livenessPassed": self.liveness_passed,
            "faceSimilarity": self.face_similarity,
            "faceMatched": self.face_matched,
            "verificationCompleted": self.verification_completed,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        return {k: v for k, v in item.items() if v is not None}


# ---------- Typed patches (field-merge updates) ----------
# Each action may only touch the fields named by its patch type.

@dataclass(frozen=True)
class DocumentPatch:
    document_key: str
    extracted_fields: Dict[str, str]
    document_type: DocumentType
    document_valid: bool
    validation_errors: List[str]

    def to_fields(self) -> Dict[str, Any]:
        return {
            "documentKey": self.document_key,
            "extractedFields": dict(self.extracted_fields),
            "documentType": self.document_type.value,
            "documentValid": self.document_valid,
            "validationErrors": list(self.validation_errors),
        }


@dataclass(frozen=True)
class FaceMatchPatch:
    face_similarity: float
    face_matched: bool

    def to_fields(self) -> Dict[str, Any]:
        return {"faceSimilarity": self.face_similarity, "faceMatched": self.face_matched}


@dataclass(frozen=True)
class LivenessPatch:
    liveness_confidence: float
    liveness_passed: bool
    match: Optional[FaceMatchPatch] = None
    # Only ever True; completion is never reverted by a later attempt.
    mark_completed: bool = False

    def __post_init__(self):
        if self.mark_completed and (self.match is None or not self.liveness_passed or not self.match.face_matched):
            raise ValueError("Completion requires a passed liveness check and a matched face")

    def to_fields(self) -> Dict[str, Any]:
        fields: Dict[str, Any] = {
            "livenessConfidence": self.liveness_confidence,
            "livenessPassed": self.liveness_passed,
        }
        if self.match is not None:
            fields.update(self.match.to_fields())
        if self.mark_completed:
            fields["verificationCompleted"] = True
        return fields
