# idverify/application/verification_orchestrator.py
"""
Verification pipeline for one user at a time:

    NO_DOCUMENT -> DOCUMENT_SUBMITTED -> DOCUMENT_VALIDATED -> LIVENESS_STARTED
        -> LIVENESS_VERIFIED -> FACE_COMPARED -> COMPLETE

Each action loads what it needs from the repository, calls the collaborators,
runs the judges and commits a single field-merge patch at the end. Nothing is
kept in memory between calls and no lock is held across an external call.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional
import logging

from ..domain.errors import (
    CollaboratorError,
    DocumentNotFoundError,
    InvalidRequestError,
    PreconditionFailedError,
    VerificationError,
)
from ..domain.interfaces import (
    DocumentAnalyzer,
    FaceComparer,
    LivenessProvider,
    ObjectStore,
    VerificationRepository,
)
from ..domain.keys import is_liveness_scoped, is_user_scoped, is_valid_user_id
from ..domain.states import VerificationState, derive_state
from ..domain.value_objects import (
    DocumentPatch,
    DocumentRules,
    DocumentType,
    FaceMatchPatch,
    ImageRef,
    LivenessPatch,
    LivenessSession,
    MatchResult,
    Thresholds,
    VerificationRecord,
)
from .document_validator import detect_document_type, extract_key_fields, validate_document
from .face_matcher import FaceMatcher
from .liveness_evaluator import LivenessEvaluator
from .requests import (
    CompareFacesRequest,
    ProcessDocumentRequest,
    StartLivenessSessionRequest,
    VerifyLivenessRequest,
    parse_request,
)

logger = logging.getLogger("idverify.verify")


# ---------- Action results ----------

@dataclass(frozen=True)
class DocumentDecision:
    document_key: str
    is_valid: bool
    errors: List[str]
    document_type: DocumentType
    fields: Dict[str, str] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "documentKey": self.document_key,
            "isValid": self.is_valid,
            "errors": list(self.errors),
            "documentType": self.document_type.value,
            "fields": dict(self.fields),
        }


@dataclass(frozen=True)
class LivenessDecision:
    is_live: bool
    confidence: Optional[float]
    face_match: bool
    similarity: Optional[float]
    verification_completed: bool
    session_status: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "isLive": self.is_live,
            "confidence": self.confidence,
            "faceMatch": self.face_match,
            "similarity": self.similarity,
            "verificationCompleted": self.verification_completed,
            "sessionStatus": self.session_status,
        }


def _session_payload(session: LivenessSession) -> Dict[str, Any]:
    return {
        "sessionId": session.session_id,
        "sessionToken": session.session_token,
        "state": VerificationState.LIVENESS_STARTED.value,
    }


def _match_payload(match: MatchResult) -> Dict[str, Any]:
    return {"matched": match.matched, "similarity": match.similarity}


class VerificationOrchestrator:
    def __init__(
        self,
        repository: VerificationRepository,
        object_store: ObjectStore,
        analyzer: DocumentAnalyzer,
        liveness: LivenessProvider,
        comparer: FaceComparer,
        thresholds: Thresholds = Thresholds(),
        rules: DocumentRules = DocumentRules(),
    ):
        self.repository = repository
        self.object_store = object_store
        self.analyzer = analyzer
        self.liveness = liveness
        self.comparer = comparer
        self.t = thresholds
        self.rules = rules
        self.liveness_evaluator = LivenessEvaluator(thresholds.liveness)
        self.face_matcher = FaceMatcher(thresholds.similarity)

        # One handler per request variant.
        self._handlers = {
            ProcessDocumentRequest: lambda r: self.process_document(r.document_key, r.user_id).to_payload(),
            StartLivenessSessionRequest: lambda r: _session_payload(self.start_liveness_session(r.user_id)),
            VerifyLivenessRequest: lambda r: self.verify_liveness(r.session_id, r.user_id).to_payload(),
            CompareFacesRequest: lambda r: _match_payload(self.compare_faces(r.user_id, r.source_image_key)),
        }

    # ---------- entry point ----------

    def handle(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Parses and runs one action. Always returns a dict with "status":
        "success" plus the action payload, or "error" with a code and message.
        """
        action = payload.get("action") if isinstance(payload, Mapping) else None
        try:
            request = parse_request(payload)
            data = self.dispatch(request)
        except VerificationError as ex:
            logger.info({"event": "action_failed", "action": action, "error": ex.code, "message": ex.message})
            return {"status": "error", "action": action, "error": ex.code, "message": ex.message}
        return {"status": "success", "action": action, **data}

    def dispatch(self, request) -> Dict[str, Any]:
        handler = self._handlers.get(type(request))
        if handler is None:
            raise InvalidRequestError(f"No handler for {type(request).__name__}")
        return handler(request)

    # ---------- process_document ----------

    def process_document(self, document_key: str, user_id: str) -> DocumentDecision:
        if not is_user_scoped(document_key, user_id):
            raise InvalidRequestError("documentKey is outside the user's namespace")

        logger.info({"event": "process_document_start", "user_id": user_id, "document_key": document_key})
        analysis = self.analyzer.analyze(ImageRef(key=document_key))
        text = analysis.text

        validation = validate_document(text, analysis.faces, self.rules)
        document_type = detect_document_type(text)
        fields = extract_key_fields(text)

        self.repository.update(user_id, DocumentPatch(
            document_key=document_key,
            extracted_fields=fields,
            document_type=document_type,
            document_valid=validation.is_valid,
            validation_errors=validation.errors,
        ))

        logger.info({
            "event": "document_validated",
            "user_id": user_id,
            "lines": len(analysis.lines),
            "faces": len(analysis.faces),
            "is_valid": validation.is_valid,
            "errors": len(validation.errors),
            "document_type": document_type.value,
            "fields_found": sorted(fields),
        })
        return DocumentDecision(
            document_key=document_key,
            is_valid=validation.is_valid,
            errors=validation.errors,
            document_type=document_type,
            fields=fields,
        )

    # ---------- start_liveness_session ----------

    def start_liveness_session(self, user_id: str) -> LivenessSession:
        if not is_valid_user_id(user_id):
            raise InvalidRequestError("Invalid userId")
        session = self.liveness.create_session(user_id, self.t.audit_images_limit)
        logger.info({"event": "liveness_session_created", "user_id": user_id, "session_id": session.session_id})
        return session

    # ---------- verify_liveness ----------

    def verify_liveness(self, session_id: str, user_id: str) -> LivenessDecision:
        record = self._require_document(user_id)

        result = self.liveness.get_session_result(session_id)
        evaluation = self.liveness_evaluator.evaluate(result.confidence)
        logger.info({
            "event": "liveness_evaluated",
            "user_id": user_id,
            "session_id": session_id,
            "session_status": result.status,
            "confidence": evaluation.confidence,
            "threshold": evaluation.threshold,
            "passed": evaluation.passed,
        })

        if evaluation.confidence is None:
            # No score to store as evidence: report the failure, persist nothing.
            return LivenessDecision(False, None, False, None, record.verification_completed, result.status)

        if not evaluation.passed:
            merged = self.repository.update(user_id, LivenessPatch(
                liveness_confidence=evaluation.confidence,
                liveness_passed=False,
            ))
            return LivenessDecision(False, evaluation.confidence, False, None,
                                    merged.verification_completed, result.status)

        reference = result.reference_image
        if reference is None:
            raise CollaboratorError("liveness", f"session {session_id} returned no reference image")
        if reference.key is not None and not is_liveness_scoped(reference.key, user_id):
            raise PreconditionFailedError("Liveness session does not belong to this user")

        reference_bytes = reference.data if reference.is_inline else self.object_store.fetch(reference)
        match = self._match_document(record, ImageRef.from_bytes(reference_bytes))

        completed = bool(record.document_valid) and match.matched
        merged = self.repository.update(user_id, LivenessPatch(
            liveness_confidence=evaluation.confidence,
            liveness_passed=True,
            match=FaceMatchPatch(face_similarity=match.similarity, face_matched=match.matched),
            mark_completed=completed,
        ))

        logger.info({
            "event": "liveness_verified",
            "user_id": user_id,
            "similarity": round(match.similarity, 2),
            "threshold_similarity": self.t.similarity,
            "face_match": match.matched,
            "document_valid": record.document_valid,
            "verification_completed": merged.verification_completed,
        })
        return LivenessDecision(True, evaluation.confidence, match.matched, match.similarity,
                                merged.verification_completed, result.status)

    # ---------- compare_faces ----------

    def compare_faces(self, user_id: str, source_image_key: str) -> MatchResult:
        """Out-of-band re-match against the stored document; never touches completion."""
        if not is_user_scoped(source_image_key, user_id):
            raise InvalidRequestError("sourceImageKey is outside the user's namespace")

        record = self._require_document(user_id)
        match = self._match_document(record, ImageRef(key=source_image_key))
        self.repository.update(user_id, FaceMatchPatch(face_similarity=match.similarity, face_matched=match.matched))

        logger.info({
            "event": "faces_compared",
            "user_id": user_id,
            "similarity": round(match.similarity, 2),
            "matched": match.matched,
        })
        return match

    # ---------- status (read-only) ----------

    def get_status(self, user_id: str) -> Optional[Dict[str, Any]]:
        record = self.repository.get(user_id)
        if record is None:
            return None
        state, outcome = derive_state(record)
        return {"state": state.value, "outcome": outcome, "record": record.to_item()}

    # ---------- helpers ----------

    def _require_document(self, user_id: str) -> VerificationRecord:
        record = self.repository.get(user_id)
        if record is None or not record.document_key:
            logger.info({"event": "document_not_found", "user_id": user_id})
            raise DocumentNotFoundError(user_id)
        return record

    def _match_document(self, record: VerificationRecord, target: ImageRef) -> MatchResult:
        candidates = self.comparer.compare(ImageRef(key=record.document_key), target, self.t.similarity)
        return self.face_matcher.judge(candidates)
