"""Login for the read-only SQLAdmin panel.

The panel is an operator convenience separate from the Firebase-backed
moderation API; it uses one static account from settings.
"""

import secrets

from sqladmin.authentication import AuthenticationBackend
from starlette.requests import Request

from app.core.settings import get_settings

SESSION_KEY = "admin_user"


class AdminAuth(AuthenticationBackend):
    """SQLAdmin auth using Starlette sessions."""

    def __init__(self) -> None:
        # SQLAdmin signs its session cookie with this secret.
        settings = get_settings()
        super().__init__(secret_key=settings.session_secret_key)

    async def login(self, request: Request) -> bool:
        form = await request.form()
        username = str(form.get("username", form.get("email", ""))).strip()
        password = str(form.get("password", ""))
        if not username or not password:
            return False

        settings = get_settings()
        ok = secrets.compare_digest(
            username.encode(), settings.admin_username.encode()
        ) & secrets.compare_digest(password.encode(), settings.admin_password.encode())
        if ok:
            request.session[SESSION_KEY] = username
        return ok

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> bool:
        return bool(request.session.get(SESSION_KEY))
