"""User domain models.

SQLModel table definitions for User and its audit log.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Column, Index, text
from sqlmodel import Field, SQLModel

from app.core.mixins import TimestampMixin, utc_now

REJECTION_REASON_MAX_LENGTH = 1000


class UserRole(str, Enum):
    """Platform roles. admin and superadmin may use the moderation API."""

    farmer = "farmer"
    admin = "admin"
    viewer = "viewer"
    superadmin = "superadmin"
    advisor = "advisor"


class UserStatus(str, Enum):
    """User account status.

    - pending: Registered, waiting for an admin decision
    - active: Approved or reactivated
    - inactive: Registration rejected
    - suspended: Blocked by an admin after approval
    """

    pending = "pending"
    active = "active"
    inactive = "inactive"
    suspended = "suspended"


class AuditAction(str, Enum):
    approve = "approve"
    reject = "reject"
    suspend = "suspend"
    reactivate = "reactivate"
    update_role = "update_role"
    delete = "delete"


@dataclass(frozen=True)
class Approved:
    by: str
    at: datetime


@dataclass(frozen=True)
class Rejected:
    by: str
    at: datetime
    reason: str


ApprovalOutcome = Approved | Rejected | None


class User(TimestampMixin, SQLModel, table=True):
    """User database model.

    Note: external_id (identity provider uid), password_hash and the token
    columns are internal-only and never exposed in API responses.

    status and the approval/rejection columns are written exclusively by
    the lifecycle engine through conditional updates.
    """

    __tablename__: str = "users"
    __table_args__ = (
        # Email is unique among live users only, so a soft-deleted
        # account does not block re-registration.
        Index(
            "uq_users_email_live",
            "email",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    external_id: str | None = Field(default=None, index=True, unique=True)
    email: str = Field(max_length=255)
    first_name: str = Field(default="", max_length=50)
    last_name: str = Field(default="", max_length=50)
    phone: str | None = Field(default=None, max_length=30)
    profile_picture: str | None = Field(default=None, max_length=500)
    region: str = Field(max_length=100, index=True)

    role: UserRole = Field(default=UserRole.farmer, index=True)
    status: UserStatus = Field(default=UserStatus.pending, index=True)

    approved_by: str | None = Field(default=None, max_length=64)
    approved_at: datetime | None = None
    rejected_by: str | None = Field(default=None, max_length=64)
    rejected_at: datetime | None = None
    rejection_reason: str | None = Field(
        default=None, max_length=REJECTION_REASON_MAX_LENGTH
    )
    last_login: datetime | None = None

    password_hash: str | None = None
    verification_token: str | None = None
    refresh_tokens: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    password_reset_token: str | None = None
    password_reset_expires: datetime | None = None

    weather_info_id: str | None = Field(default=None, max_length=64)
    farm_asset_ids: list[str] = Field(default_factory=list, sa_column=Column(JSON))

    deleted_at: datetime | None = Field(default=None, index=True)
    deleted_by: str | None = Field(default=None, max_length=64)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def approval_outcome(self) -> ApprovalOutcome:
        """The moderation decision as a tagged value instead of loose columns."""
        if self.approved_by is not None and self.approved_at is not None:
            return Approved(by=self.approved_by, at=self.approved_at)
        if self.rejected_by is not None and self.rejected_at is not None:
            return Rejected(
                by=self.rejected_by,
                at=self.rejected_at,
                reason=self.rejection_reason or "",
            )
        return None


class UserAuditEntry(SQLModel, table=True):
    """One row per lifecycle mutation, written in the same transaction."""

    __tablename__: str = "user_audit_log"

    id: int | None = Field(default=None, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    actor_id: str = Field(max_length=64)
    action: AuditAction
    from_status: UserStatus | None = None
    to_status: UserStatus | None = None
    from_role: UserRole | None = None
    to_role: UserRole | None = None
    detail: str | None = Field(default=None, max_length=REJECTION_REASON_MAX_LENGTH)
    created_at: datetime = Field(default_factory=utc_now)
