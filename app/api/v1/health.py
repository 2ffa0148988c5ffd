"""Health check endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.deps import get_db
from app.core.rate_limit import limiter
from app.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
@limiter.limit(settings.default_rate_limit)
async def health_check(
    request: Request,  # noqa: ARG001
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """
    Health check endpoint.

    Checks database connectivity and returns service status.
    """
    health_status: dict[str, Any] = {
        "status": "healthy",
        "version": settings.version,
        "environment": settings.environment,
        "checks": {},
    }

    # Check database connection
    try:
        await db.execute(text("SELECT 1"))
        health_status["checks"]["database"] = "healthy"
    except SQLAlchemyError as e:
        logger.warning("Database health check failed: %s", e)
        health_status["status"] = "unhealthy"
        health_status["checks"]["database"] = "unhealthy"

    return health_status


@router.get("/health/live")
@limiter.limit(settings.default_rate_limit)
async def liveness_check(request: Request) -> dict[str, str]:  # noqa: ARG001
    """
    Liveness probe for container orchestration.

    Simple check that the service is running.
    """
    return {"status": "alive"}


@router.get("/health/ready", response_model=None)
@limiter.limit(settings.default_rate_limit)
async def readiness_check(
    request: Request,  # noqa: ARG001
    db: AsyncSession = Depends(get_db),
) -> dict[str, str] | JSONResponse:
    """
    Readiness probe for container orchestration.

    Checks if the database is reachable before traffic is routed here.
    """
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Readiness check failed")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not ready"},
        )

    return {"status": "ready"}
