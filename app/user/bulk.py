"""Bulk operation coordinator.

Applies a single-user lifecycle action to many ids with per-item
isolation: one failure never stops the batch, and nothing is rolled back
for items that already succeeded.
"""

import uuid
from collections.abc import Callable, Sequence
from enum import Enum

from app.core.exceptions import AppException
from app.user.exceptions import UserNotFoundError
from app.user.models import User
from app.user.repository import UserRepository
from app.user.schemas import BulkFailure, BulkResult, BulkSuccess, UserRead

LifecycleAction = Callable[[uuid.UUID, str], User]


def _parse_id(raw: uuid.UUID | str) -> uuid.UUID:
    if isinstance(raw, uuid.UUID):
        return raw
    try:
        return uuid.UUID(str(raw).strip())
    except ValueError as e:
        # No record can carry an id that is not a UUID.
        raise UserNotFoundError() from e


class BulkAction(str, Enum):
    """Lifecycle transitions that can be applied in bulk."""

    approve = "approve"
    suspend = "suspend"
    reactivate = "reactivate"


class BulkCoordinator:
    def __init__(self, repository: UserRepository):
        self.repository = repository

    def run(
        self,
        user_ids: Sequence[uuid.UUID | str],
        actor_id: str,
        action: LifecycleAction,
    ) -> BulkResult:
        """Apply action to each id in input order.

        Duplicate ids are processed independently and ids that are not UUIDs
        fail as not_found. Application errors are recorded per item; anything
        else propagates.
        """
        result = BulkResult()
        for raw_id in user_ids:
            user_id: uuid.UUID | str = raw_id
            try:
                user_id = _parse_id(raw_id)
                user = action(user_id, actor_id)
            except AppException as e:
                # Leave the session clean for the next item.
                self.repository.rollback()
                result.failed.append(
                    BulkFailure(
                        id=user_id,
                        error_kind=e.kind,
                        error_type=e.error_type,
                        message=e.message,
                    )
                )
                continue
            result.succeeded.append(
                BulkSuccess(id=user_id, result=UserRead.model_validate(user))
            )
        return result
