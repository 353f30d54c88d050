"""
Error Taxonomy

Every failure a handler can report maps to exactly one of these classes.
The FastAPI exception handlers in ``cafe.main`` turn them into
``{"success": false, "error": <message>}`` with the class's HTTP status.
Nothing here is retried; the store and identity provider are assumed to be
synchronously available.
"""

from typing import Optional


class CafeError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(CafeError):
    """Missing or malformed request fields."""
    status_code = 400
    default_message = "Invalid input"


class InvalidStateError(CafeError):
    """Request is well formed but the records do not allow it."""
    status_code = 400
    default_message = "Operation not allowed in the current state"


class UnauthorizedError(CafeError):
    """Missing or invalid bearer token, or rejected credentials."""
    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(CafeError):
    """Authenticated, but the role does not allow the operation."""
    status_code = 403
    default_message = "Forbidden - Admin access required"


class NotFoundError(CafeError):
    status_code = 404
    default_message = "Not found"


class ConflictError(CafeError):
    status_code = 409
    default_message = "Resource already exists"


class InternalError(CafeError):
    status_code = 500
