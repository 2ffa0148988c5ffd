"""Mailing-list subscription endpoints."""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.deps import ClientIP, DBSession
from app.core.rate_limit import limiter
from app.schemas.common import ErrorResponse
from app.schemas.subscriber import (
    REACTIVATED_MESSAGE,
    SubscribeRequest,
    SubscribeResponse,
)
from app.services.subscriber_service import (
    SubscriberService,
    SubscribeStatus,
    SubscriptionValidationError,
)

router = APIRouter()


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=SubscribeResponse,
    response_model_exclude_none=True,
    responses={
        status.HTTP_200_OK: {"model": SubscribeResponse},
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_409_CONFLICT: {"model": SubscribeResponse},
        status.HTTP_429_TOO_MANY_REQUESTS: {"model": ErrorResponse},
    },
)
@limiter.limit(settings.subscribe_rate_limit)
async def subscribe(
    request: Request,  # noqa: ARG001, required by slowapi
    data: SubscribeRequest,
    db: DBSession,
    client_ip: ClientIP,
) -> JSONResponse:
    """Subscribe an email address to the mailing list.

    Rate limited to 5 requests per minute per IP.
    Submissions with the honeypot field filled get the normal success
    response without anything being stored.
    """
    service = SubscriberService(db)

    try:
        result = await service.subscribe(data, client_ip)
    except SubscriptionValidationError as e:
        return _respond(status.HTTP_400_BAD_REQUEST, SubscribeResponse.error_response(e.message))

    if result.status == SubscribeStatus.ALREADY_SUBSCRIBED:
        return _respond(status.HTTP_409_CONFLICT, SubscribeResponse.already_subscribed_response())

    if result.status == SubscribeStatus.REACTIVATED:
        return _respond(
            status.HTTP_201_CREATED,
            SubscribeResponse.success_response(REACTIVATED_MESSAGE),
        )

    if result.status == SubscribeStatus.FILTERED:
        # Same body as CREATED
        return _respond(status.HTTP_200_OK, SubscribeResponse.success_response())

    return _respond(status.HTTP_201_CREATED, SubscribeResponse.success_response())


def _respond(status_code: int, body: SubscribeResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.to_json())
