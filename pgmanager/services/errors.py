"""Business-rule error taxonomy shared by services and the HTTP layer."""

from typing import Any, Dict

from fastapi import status


class LedgerError(Exception):
    """Base application error.

    All business-rule failures are caller-correctable and never retried.
    """

    def __init__(self, message: str, code: str, http_status: int = status.HTTP_400_BAD_REQUEST):
        """Initialize error."""
        self.message = message
        self.code = code
        self.http_status = http_status
        super().__init__(message)


class NotFoundError(LedgerError):
    """Tenant, room, payment, settlement or complaint does not exist."""

    def __init__(self, message: str = "Not found"):
        super().__init__(message, "not_found", status.HTTP_404_NOT_FOUND)


class ConflictError(LedgerError):
    """Room not available, duplicate record or invalid state transition."""

    def __init__(self, message: str = "Conflict"):
        super().__init__(message, "conflict", status.HTTP_409_CONFLICT)


class ForbiddenError(LedgerError):
    """Caller is not allowed to act on this owner's or tenant's data."""

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, "forbidden", status.HTTP_403_FORBIDDEN)


class ValidationError(LedgerError):
    """Missing or invalid input fields."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, "validation_error", status.HTTP_400_BAD_REQUEST)


def error_response(error: LedgerError) -> Dict[str, Any]:
    """Create a standardized error response body."""
    return {
        "error": {
            "code": error.code,
            "message": error.message,
        }
    }


__all__ = [
    "LedgerError",
    "NotFoundError",
    "ConflictError",
    "ForbiddenError",
    "ValidationError",
    "error_response",
]
