"""
Storefront Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.
Who:   Used by all test files in the tests/ directory.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── test_settings: Settings pointing at a throwaway SQLite file + upload dir
    ├── app: Application built from test_settings, tables created
    ├── test_client: HTTPX AsyncClient bound to `app`
    ├── auth_service: AuthService sharing the app's signing secret
    ├── mock_db_session: Mock database session (no real DB needed)
    ├── sample_image_bytes: Tiny PNG for upload tests
    ├── sample_jpeg_bytes: Tiny JPEG for upload tests
    └── register_user: Helper that registers an account and returns its token
"""

import os
import tempfile
from typing import Any, AsyncGenerator, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Override settings BEFORE any app imports: importing app.main builds the
# module-level app from the environment
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(
    tempfile.mkdtemp(prefix="storefront_test_"), "import.db"
)
os.environ["JWT_SECRET"] = "test-secret"
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests

from app.config import Settings  # noqa: E402
from app.database import Base  # noqa: E402
from app.main import create_app  # noqa: E402
from app.services.auth_service import AuthService  # noqa: E402

from app import models  # noqa: E402,F401  (registers tables on Base.metadata)


# ══════════════════════════════════════════════════════════════════════════
# Application Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """
    Settings for one test: its own database file and upload root, and the
    cheapest bcrypt cost so registration/login tests stay fast.
    """
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}",
        upload_root=str(tmp_path / "uploads"),
        jwt_secret="test-secret",
        bcrypt_rounds=4,
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def app(test_settings):
    """
    Provides a fully wired application with an empty schema.

    The ASGI transport does not run the lifespan, so tables are created
    here and the engine is disposed on teardown.
    """
    application = create_app(test_settings)
    async with application.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield application
    await application.state.engine.dispose()


@pytest_asyncio.fixture
async def test_client(app) -> AsyncGenerator[AsyncClient, None]:
    """
    Provides an async HTTP test client for endpoint testing.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_service(test_settings) -> AuthService:
    return AuthService(test_settings)


# ══════════════════════════════════════════════════════════════════════════
# Data Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    What:    A mock that simulates AsyncSession behavior.
    How:     Mocks execute, get, flush, refresh, commit, rollback and close.

    Usage:
        async def test_missing_product(mock_db_session):
            mock_db_session.get.return_value = None
            await catalog.get_product(mock_db_session, str(uuid4()))
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def sample_image_bytes() -> bytes:
    """
    Minimal PNG bytes for upload tests.

    PNG signature plus the start of an IHDR chunk: enough header for libmagic
    to report image/png. No pixel data.
    """
    return b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + b"\x00" * 13


@pytest.fixture
def sample_jpeg_bytes() -> bytes:
    """Smallest JFIF file libmagic reports as image/jpeg: SOI + APP0 header + EOI."""
    return (
        b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
        b"\xff\xd9"
    )


@pytest.fixture
def register_user(test_client):
    """
    Returns an async helper that registers an account.

    Usage:
        body = await register_user(email="bob@example.com")
        token = body["token"]
    """

    async def _register(
        username: str = "alice",
        email: str = "alice@example.com",
        password: str = "s3cret-pass",
    ) -> Dict[str, Any]:
        response = await test_client.post(
            "/api/users/register",
            json={"username": username, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _register

