"""
Portcullis Backend - Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   The environment is set at the top of this module, before anything
       imports app.config, because settings are validated at import time.

Fixture Hierarchy:
    Autouse:
    └── reset_rate_limits: empties both limiter stores around every test

    Function-scoped:
    ├── mock_db_session: AsyncMock standing in for AsyncSession
    ├── database: creates / drops the tables in the throwaway SQLite file
    ├── db_session: a real AsyncSession on that file
    ├── test_client: HTTPX AsyncClient over ASGITransport
    └── auth_header: builds `Authorization: Bearer ...` for a user id/email
"""

import os
import tempfile
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

_DB_DIR = tempfile.mkdtemp(prefix="portcullis_test_")

os.environ["NODE_ENV"] = "test"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
os.environ["JWT_SECRET"] = "Portcullis-Test-Signing-Key-0123456789"
os.environ["BASE_URL"] = "http://localhost:3000"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("GOOGLE_CLIENT_ID", None)
os.environ.pop("GOOGLE_CLIENT_SECRET", None)


# ══════════════════════════════════════════════════════════════════════════
# Autouse Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def reset_rate_limits():
    from app.middleware.rate_limit import api_rate_limiter, auth_rate_limiter

    auth_rate_limiter.store.clear()
    api_rate_limiter.store.clear()
    yield
    auth_rate_limiter.store.clear()
    api_rate_limiter.store.clear()


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_get_user(mock_db_session):
            mock_db_session.execute.return_value.scalar_one_or_none.return_value = user
            result = await user_service.get_by_id(mock_db_session, 1)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.delete = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def make_user():
    """Factory for detached User rows with timestamps already set."""
    from app.models.user import User

    def _make(**overrides):
        now = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)
        fields = {
            "id": 1,
            "email": "ada@example.com",
            "name": "Ada",
            "password": None,
            "avatar": None,
            "google_id": None,
            "created_at": now,
            "updated_at": now,
        }
        fields.update(overrides)
        return User(**fields)

    return _make


@pytest_asyncio.fixture
async def database():
    """Creates every table before the test and drops them afterwards."""
    from app.database import Base, engine
    from app.models.user import User  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session(database):
    from app.database import async_session_factory

    async with async_session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def test_client():
    """
    Provides an async HTTP test client for endpoint testing.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from app.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_header():
    from app.security.tokens import sign_token

    def _header(user_id: int = 1, email: str = "ada@example.com") -> dict:
        return {"Authorization": f"Bearer {sign_token(user_id, email)}"}

    return _header
