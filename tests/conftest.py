import inspect
import os
from unittest.mock import MagicMock

# Settings are read when app.db.engine is imported; provide test defaults
# before any app module loads.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SESSION_SECRET_KEY", "test-secret-key")
os.environ.setdefault("ADMIN_USERNAME", "admin")
os.environ.setdefault("ADMIN_PASSWORD", "admin")

import anyio  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402
from sqlmodel.pool import StaticPool  # noqa: E402

from app.auth.dependencies import get_current_user  # noqa: E402
from app.auth.service import (  # noqa: E402
    FirebaseAuthService,
    TokenClaims,
    get_firebase_auth_service,
)
from app.core.settings import Settings, get_settings  # noqa: E402
from app.db.engine import get_session  # noqa: E402
from app.main import app  # noqa: E402
from app.user.models import User, UserRole, UserStatus  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    # Tests use @pytest.mark.asyncio, but we intentionally rely on anyio.
    config.addinivalue_line(
        "markers",
        "asyncio: run async tests using anyio (project-local hook)",
    )


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Run @pytest.mark.asyncio tests with anyio.

    This avoids adding an external pytest-asyncio dependency.
    """
    if pyfuncitem.get_closest_marker("asyncio") is None:
        return None

    test_func = pyfuncitem.obj
    if not inspect.iscoroutinefunction(test_func):
        return None

    funcargs = {
        name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames
    }

    async def _run_async_test() -> None:
        await test_func(**funcargs)

    anyio.run(_run_async_test)
    return True


@pytest.fixture(name="session")
def session_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture(name="make_user")
def make_user_fixture(session: Session):
    """Factory inserting users directly, bypassing the lifecycle engine."""
    counter = 0

    def _make_user(**overrides) -> User:
        nonlocal counter
        counter += 1
        fields = {
            "email": f"user{counter}@example.com",
            "first_name": f"First{counter}",
            "last_name": f"Last{counter}",
            "region": "Nairobi",
            "role": UserRole.farmer,
            "status": UserStatus.pending,
        }
        fields.update(overrides)
        user = User(**fields)
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user


@pytest.fixture(name="test_user")
def test_user_fixture(make_user):
    """An active farmer: authenticated but not allowed to moderate."""
    return make_user(
        external_id="test-firebase-uid-123",
        email="test@example.com",
        first_name="Test",
        last_name="User",
        status=UserStatus.active,
    )


@pytest.fixture(name="inactive_user")
def inactive_user_fixture(make_user):
    """A suspended user."""
    return make_user(
        external_id="inactive-uid-456",
        email="inactive@example.com",
        first_name="Inactive",
        last_name="User",
        status=UserStatus.suspended,
    )


@pytest.fixture(name="admin_user")
def admin_user_fixture(make_user):
    return make_user(
        external_id="admin-uid-789",
        email="admin@example.com",
        first_name="Admin",
        last_name="User",
        role=UserRole.admin,
        status=UserStatus.active,
    )


@pytest.fixture(name="superadmin_user")
def superadmin_user_fixture(make_user):
    return make_user(
        external_id="superadmin-uid-000",
        email="root@example.com",
        first_name="Super",
        last_name="Admin",
        role=UserRole.superadmin,
        status=UserStatus.active,
    )


@pytest.fixture(name="mock_firebase_auth")
def mock_firebase_auth_fixture():
    """Create a mock FirebaseAuthService."""
    mock_service = MagicMock(spec=FirebaseAuthService)
    # Default mock behaviors
    mock_service.verify_session_cookie.return_value = TokenClaims(uid="test-uid")
    mock_service.verify_id_token.return_value = TokenClaims(uid="test-uid")
    return mock_service


@pytest.fixture(name="mock_settings")
def mock_settings_fixture():
    """Create mock settings."""
    return Settings.model_validate(
        {
            "ENV_NAME": "test",
            "DATABASE_URL": "sqlite://",
            "SESSION_SECRET_KEY": "test-secret-key",
            "ADMIN_USERNAME": "admin",
            "ADMIN_PASSWORD": "admin",
            "DEFAULT_PAGE_LIMIT": 20,
            "MAX_PAGE_LIMIT": 100,
        }
    )


def _override_common(
    session: Session, mock_firebase_auth: MagicMock, mock_settings: Settings
) -> None:
    def get_session_override():
        return session

    def get_firebase_auth_override():
        return mock_firebase_auth

    def get_settings_override():
        return mock_settings

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_firebase_auth_service] = get_firebase_auth_override
    app.dependency_overrides[get_settings] = get_settings_override


@pytest.fixture(name="client")
def client_fixture(
    session: Session,
    test_user: User,
    mock_firebase_auth: MagicMock,
    mock_settings: Settings,
):
    """Test client authenticated as a non-admin user."""
    _override_common(session, mock_firebase_auth, mock_settings)
    app.dependency_overrides[get_current_user] = lambda: test_user

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()


@pytest.fixture(name="admin_client")
def admin_client_fixture(
    session: Session,
    admin_user: User,
    mock_firebase_auth: MagicMock,
    mock_settings: Settings,
):
    """Test client authenticated as an admin."""
    _override_common(session, mock_firebase_auth, mock_settings)
    app.dependency_overrides[get_current_user] = lambda: admin_user

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()


@pytest.fixture(name="unauthenticated_client")
def unauthenticated_client_fixture(
    session: Session,
    mock_firebase_auth: MagicMock,
    mock_settings: Settings,
):
    """Create a test client without auth override (for testing auth failures)."""
    _override_common(session, mock_firebase_auth, mock_settings)

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()
