"""Pytest configuration and fixtures for the TCGHit API test suite.

Provides:
- A throwaway SQLite database (aiosqlite) per test, tables created from the models
- An async test client with the DB dependency overridden
- Disabled rate limiting (re-enabled explicitly by the rate limit tests)
- A Subscriber factory fixture
"""

import os
import tempfile
from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

# Point the app at SQLite before any app module reads settings
_TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="tcghit-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB_DIR / 'app.db'}"
os.environ["RATE_LIMIT_STORAGE_URI"] = "memory://"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import func, select  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool  # noqa: E402

from app.core.database import get_async_session  # noqa: E402
from app.core.deps import get_db  # noqa: E402
from app.core.rate_limit import limiter  # noqa: E402
from app.main import app  # noqa: E402
from app.models.base import Base  # noqa: E402
from app.models.subscriber import Subscriber  # noqa: E402

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
SUBSCRIBE_URL = "/api/subscribers"
TEST_CLIENT_IP = "198.51.100.7"

# ---------------------------------------------------------------------------
# Disable rate limiting globally for tests
# ---------------------------------------------------------------------------
limiter.enabled = False


# ---------------------------------------------------------------------------
# Per-test database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Fresh SQLite file per test with all tables created.

    A file (not :memory:) so that separate sessions really are separate
    connections, which the concurrency tests rely on. NullPool keeps
    connections from outliving the test's event loop.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
        future=True,
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for test setup and assertions."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def count_subscribers(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Any]:
    """Count stored subscribers using a fresh session (sees committed rows only)."""

    async def _count() -> int:
        async with session_factory() as session:
            result = await session.execute(select(func.count()).select_from(Subscriber))
            return int(result.scalar_one())

    return _count


@pytest.fixture
def get_subscriber(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Any]:
    """Load a subscriber by email using a fresh session."""

    async def _get(email: str) -> Subscriber | None:
        async with session_factory() as session:
            result = await session.execute(select(Subscriber).where(Subscriber.email == email))
            return result.scalar_one_or_none()

    return _get


# ---------------------------------------------------------------------------
# HTTP clients
# ---------------------------------------------------------------------------


def _override_db(session_factory: async_sessionmaker[AsyncSession]) -> None:
    async def _override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as s:
            yield s

    app.dependency_overrides[get_async_session] = _override_session
    app.dependency_overrides[get_db] = _override_session


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient, None]:
    """Async test client backed by the per-test database."""
    _override_db(session_factory)

    async with AsyncClient(
        transport=ASGITransport(app=app, client=(TEST_CLIENT_IP, 50123)),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def lenient_client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient, None]:
    """Like ``client`` but returns 500 responses instead of re-raising app errors."""
    _override_db(session_factory)

    async with AsyncClient(
        transport=ASGITransport(
            app=app,
            client=(TEST_CLIENT_IP, 50123),
            raise_app_exceptions=False,
        ),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def plain_client() -> AsyncGenerator[AsyncClient, None]:
    """Minimal async test client with NO dependency overrides."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ---------------------------------------------------------------------------
# Model Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def subscriber_factory(db_session: AsyncSession) -> Callable[..., Any]:
    """Factory that creates Subscriber rows in the test database."""

    async def _create(
        *,
        email: str = "collector@example.com",
        consent_given: bool = True,
        source: str | None = "landing-page",
        subscribed_at: datetime | None = None,
        ip_address: str | None = "192.0.2.1",
        is_active: bool = True,
    ) -> Subscriber:
        subscriber = Subscriber(
            email=email,
            consent_given=consent_given,
            source=source,
            subscribed_at=subscribed_at or datetime(2025, 1, 1, tzinfo=UTC),
            ip_address=ip_address,
            is_active=is_active,
        )
        db_session.add(subscriber)
        await db_session.commit()
        await db_session.refresh(subscriber)
        return subscriber

    return _create


def subscribe_payload(email: str = "collector@example.com", **overrides: Any) -> dict[str, Any]:
    """Build a valid landing-page form body."""
    payload: dict[str, Any] = {"email": email, "consentGiven": True}
    payload.update(overrides)
    return payload
