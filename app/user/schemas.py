"""User domain schemas.

Request and response schemas for the moderation API.

Security notes:
- UserRead never carries password_hash, verification/refresh/reset tokens
  or external_id; every user-returning operation goes through it
- UserCreate passes the opaque security fields through untouched
"""

import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import (
    EmailStr,
    Field,
    ValidationInfo,
    field_serializer,
    field_validator,
)
from sqlmodel import SQLModel

from app.core.constants import (
    DEFAULT_USER_SORT_FIELD,
    MAX_ROW_OFFSET,
    USER_SORT_ALIASES,
    USER_SORT_FIELDS,
)
from app.user.exceptions import (
    InvalidPaginationError,
    InvalidRoleError,
    InvalidStatusError,
)
from app.user.models import AuditAction, UserRole, UserStatus


def _to_utc_iso(value: datetime | None) -> str | None:
    """Format datetime as ISO 8601 string in UTC with a Z suffix."""
    if value is None:
        return None
    # Naive datetimes come back from SQLite; they are stored as UTC.
    if value.tzinfo is not None:
        utc_value = value.astimezone(UTC)
    else:
        utc_value = value.replace(tzinfo=UTC)
    return utc_value.replace(microsecond=0).isoformat().replace("+00:00", "Z")


def parse_role(value: Any, field: str = "role") -> UserRole:
    """Coerce a raw value into UserRole or raise InvalidRoleError."""
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole(str(value).strip().lower())
    except ValueError as e:
        raise InvalidRoleError(value, field=field) from e


def parse_status(value: Any, field: str = "status") -> UserStatus:
    """Coerce a raw value into UserStatus or raise InvalidStatusError."""
    if isinstance(value, UserStatus):
        return value
    try:
        return UserStatus(str(value).strip().lower())
    except ValueError as e:
        raise InvalidStatusError(value, field=field) from e


class SortOrder(str, Enum):
    asc = "asc"
    desc = "desc"


class UserRead(SQLModel):
    """Response schema for a user in admin contexts."""

    id: uuid.UUID
    email: str
    first_name: str | None
    last_name: str | None
    phone: str | None = None
    profile_picture: str | None = None
    region: str
    role: UserRole
    status: UserStatus
    approved_by: str | None = None
    approved_at: datetime | None = None
    rejected_by: str | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None
    last_login: datetime | None = None
    weather_info_id: str | None = None
    farm_asset_ids: list[str] = []
    created_at: datetime
    updated_at: datetime

    @field_serializer(
        "approved_at",
        "rejected_at",
        "last_login",
        "created_at",
        "updated_at",
    )
    def serialize_datetime(self, value: datetime | None) -> str | None:
        return _to_utc_iso(value)


class UserCreate(SQLModel):
    """Schema for registration intake.

    Registration itself (password hashing, verification mail) happens
    upstream; this only accepts the resulting record, always as pending.
    """

    email: EmailStr
    region: str = Field(min_length=1, max_length=100)
    first_name: str = Field(default="", max_length=50)
    last_name: str = Field(default="", max_length=50)
    phone: str | None = Field(default=None, max_length=30)
    profile_picture: str | None = None
    role: UserRole = UserRole.farmer
    external_id: str | None = None
    password_hash: str | None = None
    verification_token: str | None = None
    refresh_tokens: list[str] = []
    password_reset_token: str | None = None
    password_reset_expires: datetime | None = None
    weather_info_id: str | None = None
    farm_asset_ids: list[str] = []

    @field_validator("email", mode="after")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("region", mode="before")
    @classmethod
    def strip_region(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class UserSearchParams(SQLModel):
    """Filter specification for user search.

    Type errors (non-numeric page, unknown role) raise domain validation
    errors naming the field. Range problems are fixed by normalized().
    """

    search: str | None = None
    role: UserRole | None = None
    status: UserStatus | None = None
    page: int = 1
    limit: int | None = None
    sort_by: str = DEFAULT_USER_SORT_FIELD
    sort_order: SortOrder = SortOrder.desc

    @field_validator("search", mode="before")
    @classmethod
    def strip_search(cls, value: Any) -> str | None:
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @field_validator("role", mode="before")
    @classmethod
    def coerce_role(cls, value: Any) -> UserRole | None:
        if value is None or value == "":
            return None
        return parse_role(value)

    @field_validator("status", mode="before")
    @classmethod
    def coerce_status(cls, value: Any) -> UserStatus | None:
        if value is None or value == "":
            return None
        return parse_status(value)

    @field_validator("page", "limit", mode="before")
    @classmethod
    def coerce_int(cls, value: Any, info: ValidationInfo) -> int | None:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None if info.field_name == "limit" else 1
        if isinstance(value, bool):
            raise InvalidPaginationError(info.field_name, value)
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise InvalidPaginationError(info.field_name, value) from e

    @field_validator("sort_by", mode="before")
    @classmethod
    def resolve_sort_alias(cls, value: Any) -> str:
        if value is None:
            return DEFAULT_USER_SORT_FIELD
        value = str(value).strip()
        return USER_SORT_ALIASES.get(value, value)

    @field_validator("sort_order", mode="before")
    @classmethod
    def lenient_sort_order(cls, value: Any) -> SortOrder:
        if isinstance(value, SortOrder):
            return value
        if isinstance(value, str) and value.strip().lower() == "asc":
            return SortOrder.asc
        return SortOrder.desc

    def normalized(self, default_limit: int, max_limit: int) -> "UserSearchParams":
        """Return a copy with page/limit clamped and sorting whitelisted."""
        limit = default_limit if self.limit is None else self.limit
        limit = min(max(limit, 1), max_limit)
        last_page = MAX_ROW_OFFSET // limit + 1
        update: dict[str, Any] = {
            "page": min(max(self.page, 1), last_page),
            "limit": limit,
        }
        if self.sort_by not in USER_SORT_FIELDS:
            update["sort_by"] = DEFAULT_USER_SORT_FIELD
            update["sort_order"] = SortOrder.desc
        return self.model_copy(update=update)


class Pagination(SQLModel):
    page: int
    limit: int
    total_count: int
    total_pages: int


class UserPage(SQLModel):
    users: list[UserRead]
    pagination: Pagination


class UserStatistics(SQLModel):
    """Aggregate counts over live users."""

    total_users: int
    users_by_role: dict[UserRole, int]
    users_by_status: dict[UserStatus, int]
    active_count: int
    pending_count: int


class RejectRequest(SQLModel):
    # Left optional so a missing reason surfaces as a domain validation
    # error instead of a schema error.
    reason: str | None = None


class RoleUpdateRequest(SQLModel):
    role: str


class BulkApproveRequest(SQLModel):
    # Parsed per item so one malformed id fails alone.
    user_ids: list[str]


class BulkSuccess(SQLModel):
    id: uuid.UUID
    result: UserRead


class BulkFailure(SQLModel):
    id: uuid.UUID | str
    error_kind: str
    error_type: str
    message: str


class BulkResult(SQLModel):
    """Per-item outcome of a bulk operation, in input order."""

    succeeded: list[BulkSuccess] = []
    failed: list[BulkFailure] = []


class DeleteResult(SQLModel):
    success: bool = True


class AuditEntryRead(SQLModel):
    id: int
    user_id: uuid.UUID
    actor_id: str
    action: AuditAction
    from_status: UserStatus | None
    to_status: UserStatus | None
    from_role: UserRole | None
    to_role: UserRole | None
    detail: str | None
    created_at: datetime

    @field_serializer("created_at")
    def serialize_datetime(self, value: datetime) -> str | None:
        return _to_utc_iso(value)
