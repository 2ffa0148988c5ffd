"""FastAPI application entry point."""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.api.v1 import health
from app.api.v1.router import api_router
from app.core.config import settings
from app.core.database import engine
from app.core.logging_config import (
    generate_request_id,
    log_access,
    request_id_var,
    setup_logging,
)
from app.core.rate_limit import limiter, rate_limit_exceeded_handler

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "An unexpected error occurred."


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    setup_logging(debug=settings.debug)
    logger.info("Starting %s v%s", settings.project_name, settings.version)
    logger.info("Environment: %s", settings.environment)
    yield
    logger.info("Shutting down...")
    await engine.dispose()


def _format_validation_errors(exc: RequestValidationError) -> str:
    """Flatten FastAPI validation errors into one caller-facing sentence."""
    parts = []
    for error in exc.errors():
        field = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        message = str(error.get("msg", "Invalid value"))
        parts.append(f"{field}: {message}" if field else message)
    return "; ".join(parts) or "Invalid request"


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.project_name,
        description=settings.description,
        version=settings.version,
        openapi_url=f"{settings.api_prefix}/openapi.json",
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        lifespan=lifespan,
    )

    # Rate limiting. Routes carry explicit limits; the middleware applies the
    # default to anything left undecorated, such as the OpenAPI routes.
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]
    app.add_middleware(SlowAPIMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    # Request ID + access log middleware
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next: Any) -> Response:
        rid = request.headers.get("X-Request-ID") or generate_request_id()
        request_id_var.set(rid)
        started = time.perf_counter()
        response: Response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        log_access(
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
        )
        return response

    # Include API routes
    app.include_router(api_router, prefix=settings.api_prefix)
    app.include_router(health.router)

    # Validation failures use the same envelope as the endpoints, with 400
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": _format_validation_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
        """Handle unhandled exceptions without leaking internals."""
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": INTERNAL_ERROR_MESSAGE},
        )

    # Redirect /docs to the API docs URL
    @app.get("/docs", include_in_schema=False)
    @limiter.limit(settings.default_rate_limit)
    async def docs_redirect(request: Request) -> RedirectResponse:  # noqa: ARG001
        return RedirectResponse(url=f"{settings.api_prefix}/docs")

    # Root endpoint
    @app.get("/")
    @limiter.limit(settings.default_rate_limit)
    async def root(request: Request) -> dict[str, Any]:  # noqa: ARG001
        """Root endpoint with API information."""
        return {
            "name": settings.project_name,
            "version": settings.version,
            "status": "running",
            "docs": f"{settings.api_prefix}/docs",
            "health": "/health",
        }

    return app


app = create_app()
