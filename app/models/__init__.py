"""SQLAlchemy models."""

from app.models.base import Base
from app.models.subscriber import Subscriber

__all__ = [
    "Base",
    "Subscriber",
]
