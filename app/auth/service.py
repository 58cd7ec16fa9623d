"""Firebase token verification.

Authentication is owned by Firebase; this backend only verifies the ID
token or session cookie a client presents and maps it to a local user.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Protocol

from firebase_admin import auth as firebase_admin_auth
from firebase_admin import get_app, initialize_app
from firebase_admin.exceptions import FirebaseError

from app.auth.exceptions import InvalidTokenError, SessionCookieError


@dataclass(frozen=True)
class TokenClaims:
    """Decoded token claims from Firebase."""

    uid: str
    email: str | None = None


class TokenVerifier(Protocol):
    """Protocol for credential verification.

    Enables dependency inversion - auth dependencies depend on this
    protocol, not on the Firebase implementation.
    """

    def verify_session_cookie(
        self, session_cookie: str, check_revoked: bool = True
    ) -> TokenClaims:
        """Verify session cookie and return claims."""
        ...

    def verify_id_token(self, id_token: str) -> TokenClaims:
        """Verify ID token and return claims."""
        ...


class FirebaseAuthService:
    """Verifies Firebase ID tokens and session cookies via the Admin SDK."""

    @staticmethod
    def _extract_token_claims(
        decoded: dict[str, Any], allow_sub: bool = False
    ) -> TokenClaims:
        """Extract uid and email from decoded token claims.

        Args:
            decoded: Decoded token dictionary
            allow_sub: Whether to accept 'sub' as uid fallback

        Raises:
            InvalidTokenError: If uid is missing
        """
        uid = decoded.get("uid")
        if allow_sub and not uid:
            uid = decoded.get("sub")

        if not uid:
            raise InvalidTokenError("Invalid token: missing uid")

        return TokenClaims(uid=uid, email=decoded.get("email"))

    def verify_session_cookie(
        self, session_cookie: str, check_revoked: bool = True
    ) -> TokenClaims:
        """Verify session cookie and return claims.

        Raises:
            SessionCookieError: If verification fails
        """
        try:
            decoded = firebase_admin_auth.verify_session_cookie(
                session_cookie, check_revoked=check_revoked
            )
        except (ValueError, FirebaseError) as e:
            raise SessionCookieError("Invalid session cookie") from e
        try:
            return self._extract_token_claims(decoded, allow_sub=True)
        except InvalidTokenError as e:
            raise SessionCookieError(e.message) from e

    def verify_id_token(self, id_token: str) -> TokenClaims:
        """Verify ID token and return claims.

        Raises:
            InvalidTokenError: If verification fails
        """
        try:
            decoded = firebase_admin_auth.verify_id_token(id_token)
        except (ValueError, FirebaseError) as e:
            raise InvalidTokenError("Invalid ID token") from e
        return self._extract_token_claims(decoded, allow_sub=False)


def init_firebase() -> None:
    """Initialize Firebase Admin SDK (idempotent).

    Uses GOOGLE_APPLICATION_CREDENTIALS for credentials; token verification
    needs no more than the project id it provides.
    """
    try:
        get_app()
    except ValueError:
        initialize_app()


@lru_cache
def get_firebase_auth_service() -> FirebaseAuthService:
    """Get cached Firebase Auth Service instance."""
    return FirebaseAuthService()
