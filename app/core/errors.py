"""
Service error kinds.

Each error carries the HTTP status it is reported with; the handler
registered in app.main turns them into a JSON body of the form
{"error": ..., "code": ..., "details": ...}.
"""
from typing import Any, Optional


class ServiceError(Exception):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code, "details": self.details}


class ValidationError(ServiceError):
    """Malformed or oversized request input. Raised before any remote call."""
    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(ServiceError):
    """A referenced user has no matching record."""
    status_code = 404
    code = "NOT_FOUND"


class UpstreamError(ServiceError):
    """Authentication, query or any other CRM failure."""
    status_code = 500
    code = "UPSTREAM_ERROR"
