"""Pydantic schemas for request/response validation."""

from app.schemas.common import ErrorResponse, HealthResponse
from app.schemas.subscriber import SubscribeRequest, SubscribeResponse

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "SubscribeRequest",
    "SubscribeResponse",
]
