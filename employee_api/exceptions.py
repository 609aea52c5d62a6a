# exceptions.py
from typing import Dict, List, Optional

FieldError = Dict[str, str]


class ServiceError(Exception):
    """Base class for failures reported to the client as structured JSON."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"status": False, "message": self.message}


class ValidationFailed(ServiceError):
    status_code = 400
    message = "Validation failed"

    def __init__(self, errors: List[FieldError], message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class ConflictError(ServiceError):
    status_code = 409
    message = "Resource already exists"


class UnauthorizedError(ServiceError):
    status_code = 401
    message = "Not authenticated"


class NotFoundError(ServiceError):
    status_code = 404
    message = "Not found"


class UploadRejected(Exception):
    """Raised by the attachment manager for an oversized or wrong-type file."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
