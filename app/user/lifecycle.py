"""User lifecycle state machine.

Allowed status transitions:

    pending   --approve-->     active
    pending   --reject-->      inactive
    active    --suspend-->     suspended
    suspended --reactivate-->  active
    inactive  --reactivate-->  active
    any live  --soft_delete--> deleted (terminal)

Every transition is one conditional UPDATE plus one audit entry committed
together. A failed precondition writes nothing; the record is re-read only
to report why it failed.
"""

import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy import ColumnElement, and_
from sqlmodel import col

from app.core.exceptions import ConflictError
from app.core.mixins import utc_now
from app.user.exceptions import (
    InvalidTransitionError,
    LastSuperadminError,
    MissingRejectionReasonError,
    RejectionReasonTooLongError,
    UserNotFoundError,
)
from app.user.models import (
    REJECTION_REASON_MAX_LENGTH,
    AuditAction,
    User,
    UserRole,
    UserStatus,
)
from app.user.repository import UserRepository
from app.user.schemas import parse_role


@dataclass(frozen=True)
class Transition:
    action: AuditAction
    sources: tuple[UserStatus, ...]
    target: UserStatus


APPROVE = Transition(AuditAction.approve, (UserStatus.pending,), UserStatus.active)
REJECT = Transition(AuditAction.reject, (UserStatus.pending,), UserStatus.inactive)
SUSPEND = Transition(AuditAction.suspend, (UserStatus.active,), UserStatus.suspended)
REACTIVATE = Transition(
    AuditAction.reactivate,
    (UserStatus.suspended, UserStatus.inactive),
    UserStatus.active,
)


class LifecycleEngine:
    """Sole writer of User.status, role and the moderation audit columns."""

    def __init__(self, repository: UserRepository):
        self.repository = repository

    def approve(self, user_id: uuid.UUID, actor_id: str) -> User:
        return self._transition(
            user_id,
            actor_id,
            APPROVE,
            {
                "approved_by": actor_id,
                "approved_at": utc_now(),
                "rejected_by": None,
                "rejected_at": None,
                "rejection_reason": None,
            },
        )

    def reject(self, user_id: uuid.UUID, actor_id: str, reason: str | None) -> User:
        """Reject a pending registration.

        Raises:
            MissingRejectionReasonError: If reason is missing or blank
            RejectionReasonTooLongError: If reason exceeds the column length
            UserNotFoundError: If the user does not exist or is deleted
            InvalidTransitionError: If the user is not pending
        """
        reason = (reason or "").strip()
        if not reason:
            raise MissingRejectionReasonError()
        if len(reason) > REJECTION_REASON_MAX_LENGTH:
            raise RejectionReasonTooLongError(REJECTION_REASON_MAX_LENGTH)

        return self._transition(
            user_id,
            actor_id,
            REJECT,
            {
                "rejected_by": actor_id,
                "rejected_at": utc_now(),
                "rejection_reason": reason,
                "approved_by": None,
                "approved_at": None,
            },
            detail=reason,
        )

    def suspend(self, user_id: uuid.UUID, actor_id: str) -> User:
        return self._transition(
            user_id,
            actor_id,
            SUSPEND,
            {},
            guard=self.repository.keeps_active_superadmin(user_id),
        )

    def reactivate(self, user_id: uuid.UUID, actor_id: str) -> User:
        return self._transition(user_id, actor_id, REACTIVATE, {})

    def update_role(self, user_id: uuid.UUID, actor_id: str, new_role: Any) -> User:
        """Assign a new role; any live status is accepted.

        Raises:
            InvalidRoleError: If new_role is not a known role
            UserNotFoundError: If the user does not exist or is deleted
            LastSuperadminError: If this would remove the last active superadmin
            ConflictError: If the role changed concurrently
        """
        role = parse_role(new_role)
        # Read before the write; a rollback expires the loaded instance.
        from_role = self.repository.get_live(user_id).role

        # Conditional on the role we read, so from_role in the audit entry
        # is exact and a concurrent change is never overwritten.
        guard: ColumnElement[bool] = col(User.role) == from_role
        if role != UserRole.superadmin:
            guard = and_(guard, self.repository.keeps_active_superadmin(user_id))

        updated = self.repository.compare_and_set(
            user_id, None, {"role": role}, guard=guard
        )
        if not updated:
            self.repository.rollback()
            latest = self.repository.get_any(user_id)
            if latest is None or latest.is_deleted:
                raise UserNotFoundError()
            if latest.role != from_role:
                raise ConflictError("Role was changed concurrently")
            raise LastSuperadminError()

        self.repository.add_audit(
            user_id,
            actor_id,
            AuditAction.update_role,
            from_role=from_role,
            to_role=role,
        )
        self.repository.commit()
        return self.repository.get_live(user_id)

    def soft_delete(self, user_id: uuid.UUID, actor_id: str) -> User:
        """Mark a user deleted. Deleting an already deleted user is a no-op.

        Raises:
            UserNotFoundError: If no record with this id exists at all
            LastSuperadminError: If this would remove the last active superadmin
        """
        current = self.repository.get_any(user_id)
        if current is None:
            raise UserNotFoundError()
        if current.is_deleted:
            return current
        from_status = current.status

        updated = self.repository.compare_and_set(
            user_id,
            None,
            {"deleted_at": utc_now(), "deleted_by": actor_id},
            guard=self.repository.keeps_active_superadmin(user_id),
        )
        if not updated:
            self.repository.rollback()
            latest = self.repository.get_any(user_id)
            if latest is None:
                raise UserNotFoundError()
            if latest.is_deleted:
                return latest
            raise LastSuperadminError()

        self.repository.add_audit(
            user_id, actor_id, AuditAction.delete, from_status=from_status
        )
        self.repository.commit()
        deleted = self.repository.get_any(user_id)
        if deleted is None:
            raise UserNotFoundError()
        return deleted

    def _transition(
        self,
        user_id: uuid.UUID,
        actor_id: str,
        transition: Transition,
        values: dict[str, Any],
        *,
        detail: str | None = None,
        guard: ColumnElement[bool] | None = None,
    ) -> User:
        # One conditional update per source status keeps from_status exact.
        for source in transition.sources:
            updated = self.repository.compare_and_set(
                user_id,
                [source],
                {**values, "status": transition.target},
                guard=guard,
            )
            if updated:
                self.repository.add_audit(
                    user_id,
                    actor_id,
                    transition.action,
                    from_status=source,
                    to_status=transition.target,
                    detail=detail,
                )
                self.repository.commit()
                return self.repository.get_live(user_id)

        self.repository.rollback()
        current = self.repository.get_any(user_id)
        if current is None or current.is_deleted:
            raise UserNotFoundError()
        if current.status in transition.sources:
            # Status matched, so the guard is what refused the write.
            raise LastSuperadminError()
        raise InvalidTransitionError(current.status.value, transition.action.value)
