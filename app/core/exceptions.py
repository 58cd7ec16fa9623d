"""App-wide exception hierarchy.

This module provides a unified exception system with automatic HTTP status code
mapping and consistent error response formatting.

Every class also carries a ``kind``: the coarse taxonomy bucket (not_found,
conflict, validation, store_unavailable) that callers such as the bulk
coordinator report without caring about the concrete subclass.
"""


class AppException(Exception):
    """Base exception for all application errors.

    All custom exceptions inherit from this class and define their own
    status_code and error_type for consistent API responses.
    """

    status_code: int = 500
    error_type: str = "internal_error"
    kind: str = "internal"

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(message)


# Authentication errors (401)
class AuthenticationError(AppException):
    """Base class for authentication failures."""

    status_code = 401
    error_type = "authentication_error"
    kind = "authentication"

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message)


# Authorization errors (403)
class AuthorizationError(AppException):
    """Base class for authorization failures."""

    status_code = 403
    error_type = "authorization_error"
    kind = "authorization"

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


# Not found errors (404)
class NotFoundError(AppException):
    """Base class for resource not found errors."""

    status_code = 404
    error_type = "not_found"
    kind = "not_found"

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


# Conflict errors (409)
class ConflictError(AppException):
    """Base class for resource conflict errors.

    Covers both uniqueness violations and illegal state transitions.
    """

    status_code = 409
    error_type = "conflict"
    kind = "conflict"

    def __init__(self, message: str = "Resource conflict"):
        super().__init__(message)


# Validation errors (400)
class ValidationError(AppException):
    """Base class for validation errors.

    ``field`` names the offending input when there is one.
    """

    status_code = 400
    error_type = "validation_error"
    kind = "validation"

    def __init__(self, message: str = "Validation failed", field: str | None = None):
        self.field = field
        super().__init__(message)


# Store errors (503)
class StoreUnavailableError(AppException):
    """Raised when the persistence layer cannot be reached.

    Never retried here; retry policy belongs to the caller.
    """

    status_code = 503
    error_type = "store_unavailable"
    kind = "store_unavailable"

    def __init__(self, message: str = "Data store is unavailable"):
        super().__init__(message)

