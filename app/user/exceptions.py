"""User domain exceptions.

User-related exceptions for not found, illegal transition, conflict and
input validation scenarios.
"""

from app.core.exceptions import ConflictError, NotFoundError, ValidationError


class UserNotFoundError(NotFoundError):
    """Raised when an id does not resolve to a live (non-deleted) user."""

    error_type = "user_not_found"

    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class InvalidTransitionError(ConflictError):
    """Raised when a lifecycle transition is not allowed from the current status."""

    error_type = "invalid_transition"

    def __init__(self, current_status: str, transition: str):
        self.current_status = current_status
        self.transition = transition
        super().__init__(
            f"Cannot {transition} a user whose status is '{current_status}'"
        )


class LastSuperadminError(ConflictError):
    """Raised when a change would leave no active superadmin."""

    error_type = "last_superadmin"

    def __init__(self, message: str = "At least one active superadmin must remain"):
        super().__init__(message)


class EmailExistsError(ConflictError):
    """Raised when attempting to register with an existing email."""

    error_type = "email_exists"

    def __init__(self, message: str = "Email already registered"):
        super().__init__(message)


class InvalidRoleError(ValidationError):
    error_type = "invalid_role"

    def __init__(self, value: object, field: str = "role"):
        super().__init__(f"Unknown role: {value!r}", field=field)


class InvalidStatusError(ValidationError):
    error_type = "invalid_status"

    def __init__(self, value: object, field: str = "status"):
        super().__init__(f"Unknown status: {value!r}", field=field)


class InvalidPaginationError(ValidationError):
    """Raised when page or limit is not an integer at all (range is clamped)."""

    error_type = "invalid_pagination"

    def __init__(self, field: str, value: object):
        super().__init__(f"{field} must be an integer, got {value!r}", field=field)


class MissingRejectionReasonError(ValidationError):
    error_type = "missing_rejection_reason"

    def __init__(self, message: str = "A rejection reason is required"):
        super().__init__(message, field="reason")


class RejectionReasonTooLongError(ValidationError):
    error_type = "rejection_reason_too_long"

    def __init__(self, max_length: int):
        super().__init__(
            f"A rejection reason may be at most {max_length} characters",
            field="reason",
        )
