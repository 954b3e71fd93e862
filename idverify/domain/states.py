# idverify/domain/states.py
from enum import Enum
from typing import Optional, Tuple

from .value_objects import VerificationRecord


class VerificationState(str, Enum):
    NO_DOCUMENT = "NO_DOCUMENT"
    DOCUMENT_SUBMITTED = "DOCUMENT_SUBMITTED"
    DOCUMENT_VALIDATED = "DOCUMENT_VALIDATED"
    LIVENESS_STARTED = "LIVENESS_STARTED"
    LIVENESS_VERIFIED = "LIVENESS_VERIFIED"
    FACE_COMPARED = "FACE_COMPARED"
    COMPLETE = "COMPLETE"


def _outcome(flag: Optional[bool]) -> Optional[str]:
    if flag is None:
        return None
    return "success" if flag else "fail"


def derive_state(record: Optional[VerificationRecord]) -> Tuple[VerificationState, Optional[str]]:
    """
    Furthest state reached by a stored record, with its outcome.
    LIVENESS_STARTED never comes out of here: sessions are not persisted.
    """
    if record is None or not record.document_key:
        return VerificationState.NO_DOCUMENT, None
    if record.document_valid is None:
        return VerificationState.DOCUMENT_SUBMITTED, None
    if record.verification_completed:
        return VerificationState.COMPLETE, "success"
    if record.face_similarity is not None:
        return VerificationState.FACE_COMPARED, _outcome(record.face_matched)
    if record.liveness_confidence is not None:
        return VerificationState.LIVENESS_VERIFIED, _outcome(record.liveness_passed)
    return VerificationState.DOCUMENT_VALIDATED, _outcome(record.document_valid)
