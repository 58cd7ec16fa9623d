"""User statistics aggregation.

A single GROUP BY (role, status) over live users feeds every count, so
the per-role and per-status totals always agree with total_users.
"""

from sqlmodel import col, func, select

from app.user.models import User, UserRole, UserStatus
from app.user.repository import UserRepository, live_filter
from app.user.schemas import UserStatistics


class UserStatisticsAggregator:
    def __init__(self, repository: UserRepository):
        self.repository = repository

    def compute(self) -> UserStatistics:
        statement = (
            select(User.role, User.status, func.count())
            .where(live_filter())
            .group_by(col(User.role), col(User.status))
        )
        with self.repository.store_errors():
            rows = self.repository.session.exec(statement).all()

        by_role = dict.fromkeys(UserRole, 0)
        by_status = dict.fromkeys(UserStatus, 0)
        total = 0
        for role, status, count in rows:
            by_role[UserRole(role)] += count
            by_status[UserStatus(status)] += count
            total += count

        return UserStatistics(
            total_users=total,
            users_by_role=by_role,
            users_by_status=by_status,
            active_count=by_status[UserStatus.active],
            pending_count=by_status[UserStatus.pending],
        )
