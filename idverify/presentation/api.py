# idverify/presentation/api.py
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_yasg.utils import swagger_auto_schema

from idverify.infrastructure.config import build_orchestrator
from idverify.domain.errors import VerificationError
from .schemas import (
    ErrorResponseSerializer,
    VerificationActionRequestSerializer,
    VerificationStatusResponseSerializer,
)

logger = logging.getLogger("idverify.verify")

# Judgment rejections (invalid document, low liveness, no match) are 200:
# they come back as "status": "success" with the evidence in the body.
ERROR_HTTP_STATUS = {
    "invalid_request": status.HTTP_400_BAD_REQUEST,
    "precondition_failed": status.HTTP_409_CONFLICT,
    "document_not_found": status.HTTP_409_CONFLICT,
    "processing_error": status.HTTP_502_BAD_GATEWAY,
}


class VerificationActionAPIView(APIView):
    """
    POST /api/verify

    Body:
    {
      "action": "process_document" | "start_liveness_session" | "verify_liveness" | "compare_faces",
      "userId": "...",
      "documentKey": "users/<userId>/documents/...",   // process_document
      "sessionId": "...",                              // verify_liveness
      "sourceImageKey": "users/<userId>/..."           // compare_faces
    }
    """
    orchestrator_factory = staticmethod(build_orchestrator)

    @swagger_auto_schema(
        operation_summary="Run a verification action",
        operation_description=(
            "Single entry point keyed by `action`.\n\n"
            "- `process_document`: analyse and validate the uploaded document.\n"
            "- `start_liveness_session`: open a liveness session for the user.\n"
            "- `verify_liveness`: evaluate the session and match the live face against the document.\n"
            "- `compare_faces`: re-match the stored document against another image.\n\n"
            "Negative verdicts answer 200 with their evidence; 400/409/502 mean the check could not run."
        ),
        request_body=VerificationActionRequestSerializer,
        responses={
            200: "One of: process_document, start_liveness_session, verify_liveness, compare_faces payloads",
            400: ErrorResponseSerializer,
            409: ErrorResponseSerializer,
            502: ErrorResponseSerializer,
        },
        tags=["Identity verification"]
    )
    def post(self, request):
        body = request.data if isinstance(request.data, dict) else {}
        try:
            orchestrator = self.orchestrator_factory()
            result = orchestrator.handle(body)
        except Exception as ex:
            logger.exception({"event": "unhandled_error", "action": body.get("action"), "error": str(ex)})
            return Response(
                {"status": "error", "action": body.get("action"), "error": "internal_error",
                 "message": "Unhandled verification error"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        if result["status"] == "success":
            return Response(result, status=status.HTTP_200_OK)
        return Response(result, status=ERROR_HTTP_STATUS.get(result.get("error"), status.HTTP_400_BAD_REQUEST))


class VerificationStatusAPIView(APIView):
    """
    GET /api/verify/<user_id>
    Stored record plus the state it has reached.
    """
    orchestrator_factory = staticmethod(build_orchestrator)

    @swagger_auto_schema(
        operation_summary="Verification status of a user",
        responses={200: VerificationStatusResponseSerializer, 404: "No verification record for this user."},
        tags=["Identity verification"]
    )
    def get(self, request, user_id: str):
        orchestrator = self.orchestrator_factory()
        try:
            found = orchestrator.get_status(user_id)
        except VerificationError as ex:
            logger.info({"event": "status_error", "user_id": user_id, "error": str(ex)})
            return Response({"status": "error", "error": "processing_error", "message": ex.message},
                            status=status.HTTP_502_BAD_GATEWAY)
        if found is None:
            return Response({"status": "error", "error": "not_found", "message": "No verification record for this user."},
                            status=status.HTTP_404_NOT_FOUND)
        return Response({"status": "success", **found}, status=status.HTTP_200_OK)
