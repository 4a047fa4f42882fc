"""
Hoot API Backend: Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets a fresh in-memory SQLite database (aiosqlite) with
       all tables created. API tests route the app's session dependency to
       that database and authenticate with tokens minted by `make_token`.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── db_engine:        async engine on an in-memory database
    ├── session_factory:  async_sessionmaker bound to db_engine
    ├── db_session:       one AsyncSession (service tests)
    ├── make_token:       callable minting bearer tokens for a user
    ├── auth_headers:     callable returning Authorization headers
    └── api_client:       HTTPX AsyncClient wired to the FastAPI app
"""

import os
import tempfile

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup (before ANY hoot_api import)
# ══════════════════════════════════════════════════════════════════════════
_tmp_dir = tempfile.mkdtemp(prefix="hoot_api_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmp_dir}/health.db"
os.environ["JWT_SECRET"] = "test-secret-not-real"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["COMMENT_EDIT_POLICY"] = "any_user"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import Callable, Dict, Optional  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from jose import jwt  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from hoot_api.config import settings  # noqa: E402
from hoot_api.database import Base, get_db_session  # noqa: E402
import hoot_api.models  # noqa: E402,F401


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """
    Fresh in-memory database per test.

    StaticPool keeps the single connection alive so every session in the
    test sees the same in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Identity Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_token() -> Callable[..., str]:
    """
    Mint a bearer token in the identity service's format.

    Usage:
        token = make_token("u1", "alice")
    """
    def _make(user_id: str, username: Optional[str] = None, secret: Optional[str] = None) -> str:
        claims = {"payload": {"_id": user_id, "username": username or user_id}}
        return jwt.encode(claims, secret or settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return _make


@pytest.fixture
def auth_headers(make_token) -> Callable[..., Dict[str, str]]:
    def _headers(user_id: str, username: Optional[str] = None) -> Dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user_id, username)}"}
    return _headers


# ══════════════════════════════════════════════════════════════════════════
# API Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def api_client(session_factory):
    """
    HTTPX AsyncClient talking to the FastAPI app over ASGI.

    The app's get_db_session dependency is overridden to use the test
    database with the same commit/rollback behavior.
    """
    from hoot_api.main import app

    async def _test_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _test_session
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()
