# idverify/application/requests.py
from __future__ import annotations
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Type, Union

from ..domain.errors import InvalidRequestError
from ..domain.keys import is_valid_user_id


def _wire(name: str):
    """Field carried in the request body under `name`."""
    return field(metadata={"wire": name})

# ---------- Request variants (one per action) ----------

@dataclass(frozen=True)
class ProcessDocumentRequest:
    document_key: str = _wire("documentKey")
    user_id: str = _wire("userId")

@dataclass(frozen=True)
class StartLivenessSessionRequest:
    user_id: str = _wire("userId")

@dataclass(frozen=True)
class VerifyLivenessRequest:
    session_id: str = _wire("sessionId")
    user_id: str = _wire("userId")

@dataclass(frozen=True)
class CompareFacesRequest:
    user_id: str = _wire("userId")
    source_image_key: str = _wire("sourceImageKey")


VerificationRequest = Union[
    ProcessDocumentRequest,
    StartLivenessSessionRequest,
    VerifyLivenessRequest,
    CompareFacesRequest,
]

ACTIONS: Dict[str, Type] = {
    "process_document": ProcessDocumentRequest,
    "start_liveness_session": StartLivenessSessionRequest,
    "verify_liveness": VerifyLivenessRequest,
    "compare_faces": CompareFacesRequest,
}


def parse_request(payload: Mapping[str, Any]) -> VerificationRequest:
    """
    Builds the request variant named by payload["action"].
    Unknown actions and missing/blank fields raise InvalidRequestError.
    """
    if not isinstance(payload, Mapping):
        raise InvalidRequestError("Request body must be a JSON object")

    action = payload.get("action")
    request_type = ACTIONS.get(action) if isinstance(action, str) else None
    if request_type is None:
        raise InvalidRequestError(f"Invalid action: {action}")

    values = {}
    missing = []
    for f in fields(request_type):
        wire = f.metadata["wire"]
        raw = payload.get(wire)
        if not isinstance(raw, str) or not raw.strip():
            missing.append(wire)
            continue
        values[f.name] = raw.strip()
    if missing:
        raise InvalidRequestError(f"Missing required field(s) for {action}: {', '.join(missing)}")
    if not is_valid_user_id(values["user_id"]):
        raise InvalidRequestError("Invalid userId: letters, digits and _ @ . - only")

    return request_type(**values)
