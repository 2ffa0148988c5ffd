"""Dependency injection for FastAPI routes."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_async_session
from app.core.rate_limit import get_client_ip


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Alias for get_async_session, the override point used by tests."""
    async for session in get_async_session():
        yield session


def get_request_client_ip(request: Request) -> str | None:
    """Resolve the originating client address for auditing."""
    return get_client_ip(request)


# Database session dependency
DBSession = Annotated[AsyncSession, Depends(get_db)]

# Resolved client address (advisory only)
ClientIP = Annotated[str | None, Depends(get_request_client_ip)]


__all__ = [
    "ClientIP",
    "DBSession",
    "get_db",
    "get_request_client_ip",
]
