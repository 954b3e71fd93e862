# idverify/infrastructure/liveness/rekognition_liveness.py
import logging
from typing import Optional
import time

from ...domain.errors import CollaboratorError
from ...domain.keys import liveness_prefix, request_token
from ...domain.value_objects import ImageRef, LivenessSession, LivenessSessionResult
from ..aws import AWS_ERRORS, aws_client, collaborator_error

logger = logging.getLogger("idverify.verify")


class RekognitionLivenessClient:
    """
    Rekognition Face Liveness.
    - create_session: output (reference + audit images) goes to s3://<bucket>/liveness/<userId>/
    - get_session_result: Confidence is only present once the session SUCCEEDED.
    """
    def __init__(self, bucket: str, client=None, clock=time.time):
        self.bucket = bucket
        self._client = client
        self._clock = clock

    @property
    def client(self):
        if self._client is None:
            self._client = aws_client("rekognition")
        return self._client

    def create_session(self, user_id: str, audit_images_limit: int) -> LivenessSession:
        token = request_token(user_id, int(self._clock() * 1000))
        try:
            resp = self.client.create_face_liveness_session(
                ClientRequestToken=token,
                Settings={
                    "OutputConfig": {"S3Bucket": self.bucket, "S3KeyPrefix": liveness_prefix(user_id)},
                    "AuditImagesLimit": int(audit_images_limit),
                },
            )
        except AWS_ERRORS as ex:
            logger.info({"event": "liveness_create_error", "user_id": user_id, "error": str(ex)})
            raise collaborator_error("liveness", ex) from ex

        session_id = resp.get("SessionId")
        if not session_id:
            raise CollaboratorError("liveness", "CreateFaceLivenessSession returned no SessionId")
        return LivenessSession(session_id=session_id, session_token=token)

    def get_session_result(self, session_id: str) -> LivenessSessionResult:
        try:
            resp = self.client.get_face_liveness_session_results(SessionId=session_id)
        except AWS_ERRORS as ex:
            logger.info({"event": "liveness_result_error", "session_id": session_id, "error": str(ex)})
            raise collaborator_error("liveness", ex) from ex

        confidence = resp.get("Confidence")
        return LivenessSessionResult(
            session_id=resp.get("SessionId", session_id),
            status=resp.get("Status", "UNKNOWN"),
            confidence=float(confidence) if confidence is not None else None,
            reference_image=self._reference(resp.get("ReferenceImage")),
        )

    @staticmethod
    def _reference(image) -> Optional[ImageRef]:
        # Bytes are always returned; S3Object only when the session had an OutputConfig.
        if not image:
            return None
        data = image.get("Bytes") or None
        s3_object = image.get("S3Object") or {}
        key = s3_object.get("Name") or None
        if data is None and key is None:
            return None
        return ImageRef(key=key, bucket=s3_object.get("Bucket") if key else None, data=data)
