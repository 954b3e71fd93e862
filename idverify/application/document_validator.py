# idverify/application/document_validator.py
import re
from typing import Dict, List, Sequence

from ..domain.value_objects import DetectedFace, DocumentRules, DocumentType, ValidationResult

# First match wins, in this order.
_DOCUMENT_TYPE_PATTERNS = (
    (DocumentType.PASSPORT, re.compile(r"passport|passeport|pasaporte", re.IGNORECASE)),
    (DocumentType.DRIVER_LICENSE, re.compile(r"driver|licen[cs]e|permis|conduire", re.IGNORECASE)),
    (DocumentType.NATIONAL_ID, re.compile(r"national|id card|identity|identit[eé]", re.IGNORECASE)),
)

_FIELD_PATTERNS = {
    "fullName": re.compile(r"^\s*(?:full\s+)?name\b[ \t:]*([^\s:].*)$", re.IGNORECASE | re.MULTILINE),
    "dateOfBirth": re.compile(r"^\s*date\s+of\s+birth\b[ \t:]*([^\s:].*)$", re.IGNORECASE | re.MULTILINE),
    "documentNumber": re.compile(
        r"^\s*(?:id|document|passport|licen[cs]e)?\s*(?:number|no\.?)(?=[\s:])[ \t:]*([^\s:].*)$",
        re.IGNORECASE | re.MULTILINE,
    ),
}


def validate_document(
    text: str,
    faces: Sequence[DetectedFace],
    rules: DocumentRules = DocumentRules(),
) -> ValidationResult:
    """
    Every rule is checked; all violations are reported together.
    Negative verdicts are returned, never raised.
    """
    errors: List[str] = []
    lowered = (text or "").lower()

    for required in rules.required_fields:
        if required.lower() not in lowered:
            errors.append(f"Missing field: {required}")

    if len(faces) != 1:
        errors.append(f"Document must contain exactly one face (found {len(faces)})")
    else:
        quality = faces[0].quality
        brightness = quality.brightness
        if brightness is None:
            errors.append("Face brightness unavailable")
        elif brightness < rules.min_brightness:
            errors.append(f"Face brightness out of range: too dark ({brightness:.1f} < {rules.min_brightness:g})")
        elif brightness > rules.max_brightness:
            errors.append(f"Face brightness out of range: too bright ({brightness:.1f} > {rules.max_brightness:g})")

        sharpness = quality.sharpness
        if sharpness is None or sharpness < rules.min_sharpness:
            shown = "unavailable" if sharpness is None else f"{sharpness:.1f} < {rules.min_sharpness:g}"
            errors.append(f"Face image not sharp enough ({shown})")

    return ValidationResult(is_valid=not errors, errors=errors)


def detect_document_type(text: str) -> DocumentType:
    for doc_type, pattern in _DOCUMENT_TYPE_PATTERNS:
        if pattern.search(text or ""):
            return doc_type
    return DocumentType.UNKNOWN


def extract_key_fields(text: str) -> Dict[str, str]:
    """Best-effort parse of labelled lines ("Name: ..."). Missing labels are left out."""
    fields: Dict[str, str] = {}
    for name, pattern in _FIELD_PATTERNS.items():
        m = pattern.search(text or "")
        if m and m.group(1).strip():
            fields[name] = m.group(1).strip()
    return fields
