"""User record store.

The only module that talks to the database for users. Lifecycle writes go
through compare_and_set(), a single conditional UPDATE, so two racing
callers can never both see their precondition hold.
"""

import uuid
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import ColumnElement, or_, update
from sqlalchemy.exc import (
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
)
from sqlalchemy.orm import aliased
from sqlmodel import Session, col, func, select
from sqlmodel.sql.expression import SelectOfScalar

from app.core.exceptions import StoreUnavailableError
from app.core.mixins import utc_now
from app.user.exceptions import EmailExistsError, UserNotFoundError
from app.user.models import (
    AuditAction,
    User,
    UserAuditEntry,
    UserRole,
    UserStatus,
)
from app.user.schemas import UserCreate

_UNAVAILABLE_ERRORS = (OperationalError, InterfaceError, DisconnectionError)


def live_filter() -> ColumnElement[bool]:
    """Predicate selecting users that have not been soft deleted."""
    return col(User.deleted_at).is_(None)


class UserRepository:
    """Persistence contract for User records over a SQLModel session."""

    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def store_errors(self) -> Iterator[None]:
        """Roll back and translate connectivity failures.

        No retry is attempted here.
        """
        try:
            yield
        except _UNAVAILABLE_ERRORS as e:
            self.session.rollback()
            raise StoreUnavailableError() from e

    def live_users(self) -> SelectOfScalar[User]:
        """Base query for every default read."""
        return select(User).where(live_filter())

    def get_any(self, user_id: uuid.UUID) -> User | None:
        """Fetch a user by id, including soft-deleted records."""
        with self.store_errors():
            return self.session.get(User, user_id, populate_existing=True)

    def get_live(self, user_id: uuid.UUID) -> User:
        user = self.get_any(user_id)
        if user is None or user.is_deleted:
            raise UserNotFoundError()
        return user

    def email_in_use(self, email: str) -> bool:
        with self.store_errors():
            statement = (
                select(func.count())
                .select_from(User)
                .where(live_filter(), func.lower(User.email) == email.strip().lower())
            )
            return self.session.exec(statement).one() > 0

    def create(self, data: UserCreate) -> User:
        """Insert a new pending user.

        Raises:
            EmailExistsError: If a live user already has this email
        """
        if self.email_in_use(data.email):
            raise EmailExistsError()

        user = User.model_validate(data, update={"status": UserStatus.pending})
        with self.store_errors():
            self.session.add(user)
            try:
                self.session.commit()
            except IntegrityError as e:
                # Lost a race against a concurrent registration.
                self.session.rollback()
                raise EmailExistsError() from e
            self.session.refresh(user)
        return user

    def compare_and_set(
        self,
        user_id: uuid.UUID,
        expected_statuses: Iterable[UserStatus] | None,
        values: dict[str, Any],
        *,
        guard: ColumnElement[bool] | None = None,
    ) -> bool:
        """Apply values to one live user only if its status is as expected.

        Args:
            user_id: Target user
            expected_statuses: Allowed current statuses, or None for any
            values: Column values to set; updated_at is always bumped
            guard: Extra predicate evaluated inside the same statement

        Returns:
            True if the row was updated, False if any condition failed.
            The caller commits or rolls back.
        """
        conditions: list[ColumnElement[bool]] = [
            col(User.id) == user_id,
            live_filter(),
        ]
        if expected_statuses is not None:
            conditions.append(col(User.status).in_(list(expected_statuses)))
        if guard is not None:
            conditions.append(guard)

        statement = (
            update(User)
            .where(*conditions)
            .values(**values, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        with self.store_errors():
            result = self.session.exec(statement)
        return result.rowcount == 1

    def keeps_active_superadmin(self, user_id: uuid.UUID) -> ColumnElement[bool]:
        """Guard: changing user_id cannot remove the last active superadmin.

        True when the target is not an active superadmin, or when another
        live active superadmin exists. The count runs over an alias of the
        users table so it is not correlated with the UPDATE that carries it;
        the check and the write happen in one statement.
        """
        other = aliased(User)
        others = (
            select(func.count())
            .select_from(other)
            .where(
                col(other.deleted_at).is_(None),
                col(other.role) == UserRole.superadmin,
                col(other.status) == UserStatus.active,
                col(other.id) != user_id,
            )
            .scalar_subquery()
        )
        return or_(
            col(User.role) != UserRole.superadmin,
            col(User.status) != UserStatus.active,
            others > 0,
        )

    def add_audit(
        self,
        user_id: uuid.UUID,
        actor_id: str,
        action: AuditAction,
        *,
        from_status: UserStatus | None = None,
        to_status: UserStatus | None = None,
        from_role: UserRole | None = None,
        to_role: UserRole | None = None,
        detail: str | None = None,
    ) -> None:
        self.session.add(
            UserAuditEntry(
                user_id=user_id,
                actor_id=actor_id,
                action=action,
                from_status=from_status,
                to_status=to_status,
                from_role=from_role,
                to_role=to_role,
                detail=detail,
            )
        )

    def audit_log(self, user_id: uuid.UUID) -> list[UserAuditEntry]:
        with self.store_errors():
            statement = (
                select(UserAuditEntry)
                .where(UserAuditEntry.user_id == user_id)
                .order_by(col(UserAuditEntry.id))
            )
            return list(self.session.exec(statement).all())

    def commit(self) -> None:
        with self.store_errors():
            self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
