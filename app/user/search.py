"""User search and pagination.

Every list operation (search, all, pending, by role) is built by the same
_filtered() query path so deletion exclusion, filtering and projection
cannot drift apart.
"""

import math

from sqlalchemy import ColumnElement
from sqlmodel import col, func, or_, select
from sqlmodel.sql.expression import SelectOfScalar

from app.user.models import User, UserRole, UserStatus
from app.user.repository import UserRepository
from app.user.schemas import (
    Pagination,
    SortOrder,
    UserPage,
    UserRead,
    UserSearchParams,
)

_SORT_COLUMNS = {
    "created_at": User.created_at,
    "email": User.email,
    "last_name": User.last_name,
    "status": User.status,
    "role": User.role,
}


def _text_match(term: str) -> ColumnElement[bool]:
    return or_(
        col(User.first_name).icontains(term, autoescape=True),
        col(User.last_name).icontains(term, autoescape=True),
        col(User.email).icontains(term, autoescape=True),
    )


class UserSearch:
    """Filterable, sortable, paginated reads over live users."""

    def __init__(
        self, repository: UserRepository, default_limit: int, max_limit: int
    ):
        self.repository = repository
        self.default_limit = default_limit
        self.max_limit = max_limit

    def _filtered(self, params: UserSearchParams) -> SelectOfScalar[User]:
        statement = self.repository.live_users()
        if params.search:
            statement = statement.where(_text_match(params.search))
        if params.role is not None:
            statement = statement.where(col(User.role) == params.role)
        if params.status is not None:
            statement = statement.where(col(User.status) == params.status)
        return statement

    def _ordered(self, statement: SelectOfScalar[User], params: UserSearchParams):
        column = col(_SORT_COLUMNS[params.sort_by])
        primary = column.asc() if params.sort_order == SortOrder.asc else column.desc()
        # id breaks ties so pages never overlap.
        return statement.order_by(primary, col(User.id).asc())

    def search(self, params: UserSearchParams | None = None) -> UserPage:
        params = (params or UserSearchParams()).normalized(
            self.default_limit, self.max_limit
        )
        limit = params.limit or self.default_limit
        filtered = self._filtered(params)

        count_statement = select(func.count()).select_from(filtered.subquery())
        page_statement = (
            self._ordered(filtered, params)
            .offset((params.page - 1) * limit)
            .limit(limit)
        )
        with self.repository.store_errors():
            total_count = self.repository.session.exec(count_statement).one()
            users = self.repository.session.exec(page_statement).all()

        return UserPage(
            users=[UserRead.model_validate(user) for user in users],
            pagination=Pagination(
                page=params.page,
                limit=limit,
                total_count=total_count,
                total_pages=math.ceil(total_count / limit),
            ),
        )

    def all(self) -> list[UserRead]:
        """Every live user, newest first, unpaginated."""
        params = UserSearchParams().normalized(self.default_limit, self.max_limit)
        statement = self._ordered(self._filtered(params), params)
        with self.repository.store_errors():
            users = self.repository.session.exec(statement).all()
        return [UserRead.model_validate(user) for user in users]

    def pending(self, params: UserSearchParams | None = None) -> UserPage:
        return self.search(
            (params or UserSearchParams()).model_copy(
                update={"status": UserStatus.pending, "search": None}
            )
        )

    def by_role(
        self, role: UserRole, params: UserSearchParams | None = None
    ) -> UserPage:
        return self.search(
            (params or UserSearchParams()).model_copy(
                update={"role": role, "search": None}
            )
        )
