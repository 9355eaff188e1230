"""
Shared pytest fixtures for all tests.

Tests run against a throwaway SQLite file through aiosqlite; the
environment is set before any hookrelay module is imported because the
database engine is built from settings at import time.
"""

import os
import tempfile
from collections.abc import AsyncGenerator, Callable, Generator
from pathlib import Path

_TEST_DIR = tempfile.mkdtemp(prefix="hookrelay-tests-")

# Ensure test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{Path(_TEST_DIR) / 'test.db'}"
os.environ["BASE_URL"] = "http://hooks.test"
os.environ["DB_CONNECT_RETRIES"] = "1"
os.environ["DB_CONNECT_RETRY_DELAY"] = "0"
os.environ["DB_CREATE_TABLES"] = "true"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from hookrelay.core.app_factory import create_app  # noqa: E402
from hookrelay.database.async_db import AsyncSessionLocal, async_engine  # noqa: E402
from hookrelay.models.db import Base  # noqa: E402
from hookrelay.services.token_service import TokenService  # noqa: E402


async def reset_tables() -> None:
    """Recreate every table so each test starts empty."""
    async with async_engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest_asyncio.fixture
async def clean_db() -> AsyncGenerator[None, None]:
    """Empty schema for async repository and service tests."""
    await reset_tables()
    yield


@pytest_asyncio.fixture
async def db_session(clean_db) -> AsyncGenerator[AsyncSession, None]:
    """
    Session on a fresh schema.

    Tests commit explicitly when they need data visible to other sessions.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


# ============================================================================
# AUTH FIXTURES
# ============================================================================


@pytest.fixture
def token_service() -> TokenService:
    return TokenService()


@pytest.fixture
def auth_headers(token_service: TokenService) -> Callable[..., dict[str, str]]:
    """Build an Authorization header for a given caller."""

    def _headers(user_id: str, email: str | None = None) -> dict[str, str]:
        token = token_service.create_access_token(user_id, email=email)
        return {"Authorization": f"Bearer {token}"}

    return _headers


# ============================================================================
# API FIXTURES
# ============================================================================


@pytest.fixture
def app() -> FastAPI:
    return create_app()


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """
    Test client with the lifespan running and an empty database.

    Tables are reset on the client's own event loop.
    """
    with TestClient(app) as test_client:
        test_client.portal.call(reset_tables)
        yield test_client
    app.dependency_overrides.clear()
