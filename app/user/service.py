"""User administration service.

The transport-agnostic operation surface of the moderation backend. Route
handlers stay thin and call into UserAdminService; tests can do the same
with a plain Session.
"""

import uuid
from collections.abc import Sequence
from typing import Annotated, Any

from fastapi import Depends
from sqlmodel import Session

from app.core.deps import SessionDep, SettingsDep
from app.core.settings import Settings, get_settings
from app.user.bulk import BulkAction, BulkCoordinator, LifecycleAction
from app.user.lifecycle import LifecycleEngine
from app.user.models import UserRole
from app.user.repository import UserRepository
from app.user.schemas import (
    AuditEntryRead,
    BulkResult,
    DeleteResult,
    UserCreate,
    UserPage,
    UserRead,
    UserSearchParams,
    UserStatistics,
    parse_role,
)
from app.user.search import UserSearch
from app.user.statistics import UserStatisticsAggregator


class UserAdminService:
    """Moderation operations over the user population.

    Every user-returning method returns UserRead, never the table model,
    so password hashes and tokens cannot leak to callers.
    """

    def __init__(self, session: Session, settings: Settings | None = None):
        settings = settings or get_settings()
        self.repository = UserRepository(session)
        self.lifecycle = LifecycleEngine(self.repository)
        self.finder = UserSearch(
            self.repository,
            default_limit=settings.default_page_limit,
            max_limit=settings.max_page_limit,
        )
        self.statistics = UserStatisticsAggregator(self.repository)
        self.bulk = BulkCoordinator(self.repository)

    # --- Reads ---

    def get_statistics(self) -> UserStatistics:
        return self.statistics.compute()

    def search_users(self, params: UserSearchParams | None = None) -> UserPage:
        return self.finder.search(params)

    def get_all_users(self) -> list[UserRead]:
        return self.finder.all()

    def get_pending_users(self, params: UserSearchParams | None = None) -> UserPage:
        return self.finder.pending(params)

    def get_users_by_role(
        self, role: Any, params: UserSearchParams | None = None
    ) -> UserPage:
        return self.finder.by_role(parse_role(role), params)

    def get_user(self, user_id: uuid.UUID) -> UserRead:
        return UserRead.model_validate(self.repository.get_live(user_id))

    def get_audit_log(self, user_id: uuid.UUID) -> list[AuditEntryRead]:
        self.repository.get_live(user_id)
        return [
            AuditEntryRead.model_validate(entry)
            for entry in self.repository.audit_log(user_id)
        ]

    # --- Registration intake ---

    def register_user(self, data: UserCreate) -> UserRead:
        return UserRead.model_validate(self.repository.create(data))

    # --- Lifecycle ---

    def approve_user(self, user_id: uuid.UUID, actor_id: str) -> UserRead:
        return UserRead.model_validate(self.lifecycle.approve(user_id, actor_id))

    def reject_user(
        self, user_id: uuid.UUID, actor_id: str, reason: str | None
    ) -> UserRead:
        return UserRead.model_validate(self.lifecycle.reject(user_id, actor_id, reason))

    def suspend_user(self, user_id: uuid.UUID, actor_id: str) -> UserRead:
        return UserRead.model_validate(self.lifecycle.suspend(user_id, actor_id))

    def reactivate_user(self, user_id: uuid.UUID, actor_id: str) -> UserRead:
        return UserRead.model_validate(self.lifecycle.reactivate(user_id, actor_id))

    def update_role(
        self, user_id: uuid.UUID, actor_id: str, new_role: UserRole | str
    ) -> UserRead:
        return UserRead.model_validate(
            self.lifecycle.update_role(user_id, actor_id, new_role)
        )

    def delete_user(self, user_id: uuid.UUID, actor_id: str) -> DeleteResult:
        self.lifecycle.soft_delete(user_id, actor_id)
        return DeleteResult(success=True)

    # --- Bulk ---

    def _bulk_action(self, action: BulkAction) -> LifecycleAction:
        actions: dict[BulkAction, LifecycleAction] = {
            BulkAction.approve: self.lifecycle.approve,
            BulkAction.suspend: self.lifecycle.suspend,
            BulkAction.reactivate: self.lifecycle.reactivate,
        }
        return actions[action]

    def bulk_transition(
        self, action: BulkAction, user_ids: Sequence[uuid.UUID | str], actor_id: str
    ) -> BulkResult:
        return self.bulk.run(user_ids, actor_id, self._bulk_action(action))

    def bulk_approve(
        self, user_ids: Sequence[uuid.UUID | str], actor_id: str
    ) -> BulkResult:
        return self.bulk_transition(BulkAction.approve, user_ids, actor_id)


def get_user_admin_service(
    session: SessionDep, settings: SettingsDep
) -> UserAdminService:
    """Build a service bound to the request's database session."""
    return UserAdminService(session, settings)


UserAdminServiceDep = Annotated[UserAdminService, Depends(get_user_admin_service)]
