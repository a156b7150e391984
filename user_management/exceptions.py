"""
Custom exceptions for the user management service.

Every exception carries the HTTP status and machine-readable code that the
central exception handlers put into the error envelope.
"""

from typing import Any, Dict, List, Optional


class AppError(Exception):
    """Base exception for all application errors."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        super().__init__(self.message)

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500


class ValidationError(AppError):
    """Raised when request data fails validation."""

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str = "Validation failed",
        errors: Optional[List[Dict[str, Any]]] = None,
    ):
        self.errors = errors or []
        super().__init__(message)


class UnauthorizedError(AppError):
    """Raised when the caller is not authenticated."""

    status_code = 401
    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Unauthorized access"):
        super().__init__(message)


class ForbiddenError(AppError):
    """Raised when the caller lacks permission for the operation."""

    status_code = 403
    code = "FORBIDDEN"

    def __init__(self, message: str = "Access forbidden"):
        super().__init__(message)


class NotFoundError(AppError):
    """Raised when a resource does not exist."""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class ConflictError(AppError):
    """Raised when a resource already exists."""

    status_code = 409
    code = "CONFLICT"

    def __init__(self, message: str = "Resource already exists"):
        super().__init__(message)


class TooManyRequestsError(AppError):
    """Raised when a client exceeds a rate limit."""

    status_code = 429
    code = "TOO_MANY_REQUESTS"

    def __init__(
        self,
        message: str = "Too many requests. Please try again later.",
        retry_after: Optional[int] = None,
    ):
        self.retry_after = retry_after
        super().__init__(message)


class InternalError(AppError):
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)


class DatabaseError(AppError):
    status_code = 500
    code = "DATABASE_ERROR"

    def __init__(self, message: str = "Database operation failed"):
        super().__init__(message)
