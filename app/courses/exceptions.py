"""
Progress engine exceptions

Raised by the database layer and the completion service, translated to
JSON responses by the handlers registered in app/courses/app.py.
"""

from typing import Any, Dict, Optional


class ProgressError(Exception):
    """Base class: message for the client, details for the logs"""

    status_code: int = 500
    retryable: bool = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "status_code": self.status_code,
            "retryable": self.retryable,
        }

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | {self.details}"
        return self.message


class NotFoundError(ProgressError):
    """User, batch, course or exercise id does not resolve"""
    status_code = 404


class ValidationError(ProgressError):
    """Malformed path or body parameters"""
    status_code = 400


class AuthorizationError(ProgressError):
    """Caller may not act on the requested user"""
    status_code = 403


class ConflictError(ProgressError):
    """User document changed between load and write"""
    status_code = 409
    retryable = True


class InternalError(ProgressError):
    """Persistence or computation failure"""
    status_code = 500
