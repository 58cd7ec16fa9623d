"""Auth domain dependencies.

Authentication dependencies for FastAPI routes: get_current_user, the
admin gate, and the actor id handed to every moderation operation.
"""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session, select

from app.auth.exceptions import (
    AdminRequiredError,
    InvalidCredentialsError,
    InvalidTokenError,
    SessionCookieError,
    UserInactiveError,
)
from app.auth.service import TokenVerifier, get_firebase_auth_service
from app.db.engine import get_session
from app.user.exceptions import UserNotFoundError
from app.user.models import User, UserRole, UserStatus
from app.user.repository import live_filter

security = HTTPBearer(auto_error=False)

ADMIN_ROLES = frozenset({UserRole.admin, UserRole.superadmin})


def get_current_user(
    request: Request,
    session: Annotated[Session, Depends(get_session)],
    firebase_auth: Annotated[TokenVerifier, Depends(get_firebase_auth_service)],
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(security)
    ] = None,
) -> User:
    """Verify Firebase authentication and return the local, live User.

    Supports two authentication methods (in priority order):
    1. Session cookie (preferred for web apps)
    2. Bearer ID token (for API clients, mobile apps)

    Raises:
        InvalidTokenError: If authentication token is invalid
        InvalidCredentialsError: If not authenticated
        UserNotFoundError: If no live user matches the token
        UserInactiveError: If user status is not active
    """
    _external_id: str | None = None

    # Priority 1: Session cookie authentication (web apps)
    session_cookie = request.cookies.get("session")

    if session_cookie:
        try:
            claims = firebase_auth.verify_session_cookie(
                session_cookie, check_revoked=True
            )
            _external_id = claims.uid
        except SessionCookieError as e:
            raise InvalidTokenError() from e

    # Priority 2: Bearer token authentication (API clients)
    if _external_id is None and credentials is not None:
        claims = firebase_auth.verify_id_token(credentials.credentials)
        _external_id = claims.uid

    # No valid authentication provided
    if not _external_id:
        raise InvalidCredentialsError("Not authenticated")

    user = session.exec(
        select(User).where(User.external_id == _external_id, live_filter())
    ).first()

    if user is None:
        raise UserNotFoundError()

    if user.status != UserStatus.active:
        raise UserInactiveError()

    return user


# Type aliases for dependency injection
CurrentUserDep = Annotated[User, Depends(get_current_user)]


def get_admin_user(user: CurrentUserDep) -> User:
    """Verify the current user may moderate accounts.

    Raises:
        AdminRequiredError: If user role is neither admin nor superadmin
    """
    if user.role not in ADMIN_ROLES:
        raise AdminRequiredError()
    return user


AdminUserDep = Annotated[User, Depends(get_admin_user)]


def get_actor_id(admin: AdminUserDep) -> str:
    """Audit reference for the acting admin."""
    return str(admin.id)


ActorIdDep = Annotated[str, Depends(get_actor_id)]


def require_admin(_user: AdminUserDep) -> None:
    """Require admin privileges without injecting user into path operation.

    Use as a router-level or endpoint-level dependency:
        router = APIRouter(dependencies=[Depends(require_admin)])
    """
    pass  # Admin check already validated by AdminUserDep
