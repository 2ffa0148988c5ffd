"""Schemas for mailing-list subscription."""

from typing import Any, Self

from pydantic import Field, ModelWrapValidatorHandler, ValidationError, model_validator

from app.models.subscriber import SOURCE_MAX_LENGTH
from app.schemas.common import CamelSchema

SUBSCRIBED_MESSAGE = "Successfully subscribed!"
REACTIVATED_MESSAGE = "Welcome back! You've been re-subscribed."
ALREADY_SUBSCRIBED_MESSAGE = "This email is already subscribed."


class SubscribeRequest(CamelSchema):
    """Subscription form submitted by the landing page.

    Every field is optional at this level. Presence, syntax and length of
    ``email`` and ``consentGiven`` are checked by the service after the
    honeypot, so bots never see validation errors.
    """

    email: str | None = Field(None, description="Email address to subscribe")
    consent_given: bool | None = Field(None, description="Consent to receive marketing emails")
    source: str | None = Field(
        None,
        max_length=SOURCE_MAX_LENGTH,
        description="Where the form lives, e.g. 'landing-page' or 'popup'",
    )
    website: str | None = Field(
        None,
        description="Honeypot field for bot detection, must be left empty",
    )

    @model_validator(mode="wrap")
    @classmethod
    def _honeypot_before_shape(cls, data: Any, handler: ModelWrapValidatorHandler[Self]) -> Self:
        """A filled honeypot wins over any shape error in the rest of the body."""
        try:
            return handler(data)
        except ValidationError:
            website = data.get("website") if isinstance(data, dict) else None
            if website is None or website == "":
                raise
            return cls.model_construct(website=str(website))


class SubscribeResponse(CamelSchema):
    """Subscription result."""

    success: bool
    message: str
    already_subscribed: bool | None = None

    @classmethod
    def success_response(cls, message: str = SUBSCRIBED_MESSAGE) -> "SubscribeResponse":
        return cls(success=True, message=message)

    @classmethod
    def already_subscribed_response(cls) -> "SubscribeResponse":
        return cls(success=False, message=ALREADY_SUBSCRIBED_MESSAGE, already_subscribed=True)

    @classmethod
    def error_response(cls, message: str) -> "SubscribeResponse":
        return cls(success=False, message=message)

    def to_json(self) -> dict[str, object]:
        """Serialize with camelCase keys, leaving out fields that don't apply."""
        return self.model_dump(by_alias=True, exclude_none=True)
