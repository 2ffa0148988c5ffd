"""Subscriber model for the landing-page mailing list."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base

EMAIL_MAX_LENGTH = 254
SOURCE_MAX_LENGTH = 50
IP_ADDRESS_MAX_LENGTH = 45  # IPv6 textual form


class Subscriber(Base):
    """A mailing-list subscriber, keyed by normalized email.

    Records are never deleted here. Unsubscribing flips ``is_active`` off and
    a later subscribe reactivates the same row. ``subscribed_at`` and
    ``is_active`` are always written by the application, the table has no
    server defaults for them.
    """

    __tablename__ = "subscribers"
    __table_args__ = (UniqueConstraint("email", name="uq_subscribers_email"),)

    # Lowercased and trimmed before it gets here
    email: Mapped[str] = mapped_column(
        String(EMAIL_MAX_LENGTH),
        nullable=False,
    )
    consent_given: Mapped[bool] = mapped_column(Boolean, nullable=False)
    source: Mapped[str | None] = mapped_column(
        String(SOURCE_MAX_LENGTH),
        nullable=True,
    )
    subscribed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    ip_address: Mapped[str | None] = mapped_column(
        String(IP_ADDRESS_MAX_LENGTH),
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False)

    def __repr__(self) -> str:
        return f"<Subscriber {self.email} active={self.is_active}>"
