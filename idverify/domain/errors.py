# idverify/domain/errors.py


class VerificationError(Exception):
    code = "verification_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequestError(VerificationError):
    """Unknown action or missing/invalid field. Raised before any collaborator call."""
    code = "invalid_request"


class PreconditionFailedError(VerificationError):
    code = "precondition_failed"


class DocumentNotFoundError(PreconditionFailedError):
    code = "document_not_found"

    def __init__(self, user_id: str):
        super().__init__("No document found for comparison")
        self.user_id = user_id


class CollaboratorError(VerificationError):
    """An external call (storage, analysis, liveness, comparison) failed or timed out."""
    code = "processing_error"

    def __init__(self, collaborator: str, message: str):
        super().__init__(f"{collaborator}: {message}")
        self.collaborator = collaborator
