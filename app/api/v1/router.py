"""API router combining all route modules."""

from fastapi import APIRouter

from app.api.v1 import subscribers

api_router = APIRouter()

# Landing-page signups (public, rate limited per IP)
api_router.include_router(
    subscribers.router,
    prefix="/subscribers",
    tags=["subscribers"],
)
