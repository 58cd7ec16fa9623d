"""User moderation router.

Admin-only routes over UserAdminService. Handlers only translate HTTP
input; every rule lives in the service layer.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from app.auth.dependencies import ActorIdDep, require_admin
from app.core.constants import CommonResponses, Routes
from app.user.bulk import BulkAction
from app.user.schemas import (
    AuditEntryRead,
    BulkApproveRequest,
    BulkResult,
    DeleteResult,
    RejectRequest,
    RoleUpdateRequest,
    UserCreate,
    UserPage,
    UserRead,
    UserSearchParams,
    UserStatistics,
)
from app.user.service import UserAdminServiceDep

router = APIRouter(
    prefix=Routes.ADMIN_USERS.prefix,
    tags=[Routes.ADMIN_USERS.tag],
    dependencies=[Depends(require_admin)],
    responses={
        **CommonResponses.UNAUTHORIZED,
        **CommonResponses.FORBIDDEN,
        **CommonResponses.STORE_UNAVAILABLE,
    },
)


def get_search_params(
    search: str | None = None,
    role: str | None = None,
    status: str | None = None,
    page: str | None = None,
    limit: str | None = None,
    sort_by: Annotated[str | None, Query(alias="sortBy")] = None,
    sort_order: Annotated[str | None, Query(alias="sortOrder")] = None,
) -> UserSearchParams:
    """Collect raw query values; the schema reports bad ones by field name."""
    return UserSearchParams.model_validate(
        {
            "search": search,
            "role": role,
            "status": status,
            "page": page,
            "limit": limit,
            "sort_by": sort_by,
            "sort_order": sort_order,
        }
    )


SearchParamsDep = Annotated[UserSearchParams, Depends(get_search_params)]


@router.get("/statistics", response_model=UserStatistics)
async def get_statistics(service: UserAdminServiceDep):
    """Counts of live users by role and by status."""
    return service.get_statistics()


@router.get(
    "", response_model=UserPage, responses={**CommonResponses.BAD_REQUEST}
)
async def search_users(service: UserAdminServiceDep, params: SearchParamsDep):
    """Search, filter, sort and paginate live users."""
    return service.search_users(params)


@router.post(
    "",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    responses={**CommonResponses.CONFLICT},
)
async def register_user(service: UserAdminServiceDep, data: UserCreate):
    """Store a registration as a pending user awaiting review."""
    return service.register_user(data)


@router.get("/all", response_model=list[UserRead])
async def get_all_users(service: UserAdminServiceDep):
    """Every live user, unpaginated."""
    return service.get_all_users()


@router.get(
    "/pending", response_model=UserPage, responses={**CommonResponses.BAD_REQUEST}
)
async def get_pending_users(service: UserAdminServiceDep, params: SearchParamsDep):
    """Registrations waiting for review."""
    return service.get_pending_users(params)


@router.get(
    "/role/{role}",
    response_model=UserPage,
    responses={**CommonResponses.BAD_REQUEST},
)
async def get_users_by_role(
    role: str, service: UserAdminServiceDep, params: SearchParamsDep
):
    """Live users holding the given role."""
    return service.get_users_by_role(role, params)


@router.post(
    "/bulk-approve",
    response_model=BulkResult,
    responses={**CommonResponses.BAD_REQUEST},
)
async def bulk_approve(
    body: BulkApproveRequest, service: UserAdminServiceDep, actor_id: ActorIdDep
):
    """Approve many pending users; failures are reported per item."""
    return service.bulk_approve(body.user_ids, actor_id)


@router.post(
    "/bulk/{action}",
    response_model=BulkResult,
    responses={**CommonResponses.BAD_REQUEST},
)
async def bulk_transition(
    action: BulkAction,
    body: BulkApproveRequest,
    service: UserAdminServiceDep,
    actor_id: ActorIdDep,
):
    """Apply one lifecycle transition to many users."""
    return service.bulk_transition(action, body.user_ids, actor_id)


@router.get(
    "/{user_id}",
    response_model=UserRead,
    responses={**CommonResponses.NOT_FOUND},
)
async def get_user(user_id: uuid.UUID, service: UserAdminServiceDep):
    """Get a live user by ID."""
    return service.get_user(user_id)


@router.get(
    "/{user_id}/audit",
    response_model=list[AuditEntryRead],
    responses={**CommonResponses.NOT_FOUND},
)
async def get_audit_log(user_id: uuid.UUID, service: UserAdminServiceDep):
    """Lifecycle history of a user, oldest first."""
    return service.get_audit_log(user_id)


@router.post(
    "/{user_id}/approve",
    response_model=UserRead,
    responses={**CommonResponses.NOT_FOUND, **CommonResponses.CONFLICT},
)
async def approve_user(
    user_id: uuid.UUID, service: UserAdminServiceDep, actor_id: ActorIdDep
):
    """Approve a pending registration."""
    return service.approve_user(user_id, actor_id)


@router.post(
    "/{user_id}/reject",
    response_model=UserRead,
    responses={
        **CommonResponses.NOT_FOUND,
        **CommonResponses.CONFLICT,
        **CommonResponses.BAD_REQUEST,
    },
)
async def reject_user(
    user_id: uuid.UUID,
    body: RejectRequest,
    service: UserAdminServiceDep,
    actor_id: ActorIdDep,
):
    """Reject a pending registration with a reason."""
    return service.reject_user(user_id, actor_id, body.reason)


@router.post(
    "/{user_id}/suspend",
    response_model=UserRead,
    responses={**CommonResponses.NOT_FOUND, **CommonResponses.CONFLICT},
)
async def suspend_user(
    user_id: uuid.UUID, service: UserAdminServiceDep, actor_id: ActorIdDep
):
    """Suspend an active user."""
    return service.suspend_user(user_id, actor_id)


@router.post(
    "/{user_id}/reactivate",
    response_model=UserRead,
    responses={**CommonResponses.NOT_FOUND, **CommonResponses.CONFLICT},
)
async def reactivate_user(
    user_id: uuid.UUID, service: UserAdminServiceDep, actor_id: ActorIdDep
):
    """Reactivate a suspended or rejected user."""
    return service.reactivate_user(user_id, actor_id)


@router.patch(
    "/{user_id}/role",
    response_model=UserRead,
    responses={
        **CommonResponses.NOT_FOUND,
        **CommonResponses.CONFLICT,
        **CommonResponses.BAD_REQUEST,
    },
)
async def update_role(
    user_id: uuid.UUID,
    body: RoleUpdateRequest,
    service: UserAdminServiceDep,
    actor_id: ActorIdDep,
):
    """Change a user's role."""
    return service.update_role(user_id, actor_id, body.role)


@router.delete(
    "/{user_id}",
    response_model=DeleteResult,
    responses={**CommonResponses.NOT_FOUND, **CommonResponses.CONFLICT},
)
async def delete_user(
    user_id: uuid.UUID, service: UserAdminServiceDep, actor_id: ActorIdDep
):
    """Soft delete a user. Deleting twice is not an error."""
    return service.delete_user(user_id, actor_id)
