"""
Domain exceptions raised by services and route handlers.

Each carries the HTTP status it maps to; ``hrportal.main`` turns them into the
standard ``{"error": ...}`` response body.
"""

from fastapi import status


class HRPortalError(Exception):
    """Base class for expected, client-facing failures."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"

    def __init__(self, message: str | None = None, detail=None):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class ValidationError(HRPortalError):
    """Missing or malformed input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class AuthenticationError(HRPortalError):
    """No credentials, bad credentials, or an invalid/expired token."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class AuthorizationError(HRPortalError):
    """Authenticated, but the role or ownership check failed.

    Reported with the same 401 status and message as an authentication
    failure so callers cannot tell the two apart.
    """

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class NotFoundError(HRPortalError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(HRPortalError):
    """The write would duplicate an existing record."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"
