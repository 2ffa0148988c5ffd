"""Async database engine and session management."""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings


def _connect_args(url: str) -> dict[str, Any]:
    """Driver-specific connection arguments."""
    if url.startswith("postgresql+asyncpg"):
        # Bounds every statement so a stuck query can't hold the request forever
        return {"command_timeout": settings.database_command_timeout}
    if url.startswith("sqlite+aiosqlite"):
        return {"timeout": settings.database_command_timeout}
    return {}


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    future=True,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.database_url),
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a request-scoped session; uncommitted work is rolled back on close."""
    async with async_session_maker() as session:
        yield session
