"""Rate limiting configuration using slowapi."""

import logging

from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request

from app.core.config import settings

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests. Please try again later."


def get_client_ip(request: Request) -> str | None:
    """Extract the real client IP behind a reverse proxy / load balancer.

    The first X-Forwarded-For entry is the original client. The value is
    client-controlled, so it is stored for auditing only and never used as
    the rate-limit key.
    """
    if settings.trust_proxy_headers:
        forwarded_for = request.headers.get("X-Forwarded-For", "").split(",")[0].strip()
        if forwarded_for:
            return forwarded_for
    return request.client.host if request.client else None


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Reject with the same envelope the subscribe endpoint uses.

    Kept synchronous: SlowAPIMiddleware calls it directly for default limits.
    """
    logger.warning(
        "Rate limit exceeded for IP %s on %s (%s)",
        get_remote_address(request),
        request.url.path,
        exc.detail,
    )
    return JSONResponse(
        status_code=429,
        content={"success": False, "message": RATE_LIMIT_MESSAGE},
    )


# Keyed on the transport peer; forwarded headers can be rotated per request
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.default_rate_limit],
    strategy="fixed-window",
    storage_uri=settings.rate_limit_storage_uri,
    enabled=settings.rate_limit_enabled,
)
