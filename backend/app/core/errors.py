"""
Application exception hierarchy.

Every domain failure carries the HTTP status it maps to; the handlers
registered in `app.main` turn them into `{"error": message}` bodies.
"""
from typing import Optional

from fastapi import status


class AuditAppError(Exception):
    """Base exception for all application errors"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AuditAppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class Unauthorized(AuditAppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class InvalidCredentials(AuditAppError):
    """Login failure. Same message for unknown user and wrong password."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid credentials"


class PermissionDenied(AuditAppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Permission denied"


class NotFound(AuditAppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Audit not found"


class DuplicateUsername(AuditAppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Username already taken"


class InvalidTransition(AuditAppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Transition not allowed"


class NoReviewersAvailable(AuditAppError):
    # Business-rule failure, surfaced as a client error
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "No auditors available in the system."
