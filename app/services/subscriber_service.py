"""Mailing-list subscription: validation, bot filtering and the subscribe upsert."""

import enum
import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.subscriber import EMAIL_MAX_LENGTH, IP_ADDRESS_MAX_LENGTH, Subscriber
from app.schemas.subscriber import SubscribeRequest

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "landing-page"

EMAIL_REQUIRED_MESSAGE = "Email is required"
EMAIL_TOO_LONG_MESSAGE = "Email address is too long"
EMAIL_INVALID_MESSAGE = "Please enter a valid email address"
CONSENT_REQUIRED_MESSAGE = "You must agree to receive emails to subscribe."

_email_adapter: TypeAdapter[str] = TypeAdapter(EmailStr)


class SubscriptionValidationError(ValueError):
    """Subscription input rejected; the message is safe to show the caller."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SubscribeStatus(str, enum.Enum):
    """Outcome of a subscribe call."""

    CREATED = "created"
    REACTIVATED = "reactivated"
    ALREADY_SUBSCRIBED = "already_subscribed"
    FILTERED = "filtered"  # honeypot hit, nothing written


@dataclass(frozen=True)
class SubscribeResult:
    status: SubscribeStatus
    subscriber: Subscriber | None = None


def normalize_email(raw: str | None) -> str:
    """Validate an address and return its trimmed, lowercased form.

    Raises:
        SubscriptionValidationError: If the address is missing, too long or
            not syntactically valid. No DNS lookups are made.
    """
    email = (raw or "").strip()
    if not email:
        raise SubscriptionValidationError(EMAIL_REQUIRED_MESSAGE)
    if len(email) > EMAIL_MAX_LENGTH:
        raise SubscriptionValidationError(EMAIL_TOO_LONG_MESSAGE)
    try:
        _email_adapter.validate_python(email)
    except PydanticValidationError:
        raise SubscriptionValidationError(EMAIL_INVALID_MESSAGE) from None
    return email.lower()


class SubscriberService:
    """Business logic for the landing-page mailing list."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_by_email(self, email: str) -> Subscriber | None:
        """Fetch a subscriber by normalized email (the column is unique)."""
        result = await self.db.execute(select(Subscriber).where(Subscriber.email == email))
        return result.scalar_one_or_none()

    async def subscribe(self, data: SubscribeRequest, client_ip: str | None) -> SubscribeResult:
        """Subscribe an address, reactivating it if it was unsubscribed.

        Order matters: the honeypot is checked before anything else so that
        automated submissions get the same success as a real signup and never
        learn which check they tripped.

        Args:
            data: The submitted form.
            client_ip: Resolved originating address, stored for auditing.

        Returns:
            SubscribeResult describing what happened.

        Raises:
            SubscriptionValidationError: Missing consent or a missing or bad email.
        """
        if data.website:
            logger.warning("Honeypot triggered for email %s", data.email)
            # Same round trip as a real signup
            await self.get_by_email((data.email or "").strip().lower())
            return SubscribeResult(SubscribeStatus.FILTERED)

        if not data.consent_given:
            raise SubscriptionValidationError(CONSENT_REQUIRED_MESSAGE)

        email = normalize_email(data.email)
        source = data.source if data.source is not None else DEFAULT_SOURCE
        ip_address = client_ip[:IP_ADDRESS_MAX_LENGTH] if client_ip else None

        existing = await self.get_by_email(email)

        if existing is not None:
            if existing.is_active:
                logger.info("Duplicate subscription attempt for %s", email)
                return SubscribeResult(SubscribeStatus.ALREADY_SUBSCRIBED, existing)

            existing.is_active = True
            existing.consent_given = data.consent_given
            existing.subscribed_at = datetime.now(UTC)
            existing.ip_address = ip_address
            existing.source = source

            if not await self._commit(email):
                return SubscribeResult(SubscribeStatus.ALREADY_SUBSCRIBED)

            logger.info("Reactivated subscriber %s", email)
            return SubscribeResult(SubscribeStatus.REACTIVATED, existing)

        subscriber = Subscriber(
            email=email,
            consent_given=data.consent_given,
            source=source,
            subscribed_at=datetime.now(UTC),
            ip_address=ip_address,
            is_active=True,
        )
        self.db.add(subscriber)

        if not await self._commit(email):
            return SubscribeResult(SubscribeStatus.ALREADY_SUBSCRIBED)

        logger.info("New subscriber added: %s from %s", email, source)
        return SubscribeResult(SubscribeStatus.CREATED, subscriber)

    async def _commit(self, email: str) -> bool:
        """Commit the pending change.

        Returns False when the unique email constraint fired, which means a
        concurrent request for the same address committed first. Any other
        database error is rolled back and re-raised.
        """
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.warning("Concurrent subscription for %s hit the unique constraint", email)
            return False
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        return True
