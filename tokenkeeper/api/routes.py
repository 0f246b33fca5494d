from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Request, status

from ..domain.errors import InvalidPayloadError
from ..domain.tokens import format_timestamp, utc_now
from ..logging_conf import get_logger
from ..service import Services
from .models import (
    CounterResponse,
    ErrorResponse,
    ExpiringTokenCreateResponse,
    TokenCloseResponse,
    TokenCreateRequest,
    TokenCreateResponse,
)

router = APIRouter(prefix="/v1")
logger = get_logger("api")

_BAD_REQUEST = {status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse}}
_CONFLICT = {status.HTTP_409_CONFLICT: {"model": ErrorResponse}}
_NOT_FOUND = {status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}


def get_services(request: Request) -> Services:
    """Services are built by the app factory and live on app.state."""
    return request.app.state.services


# Handlers are `async def` with no awaits inside, so each one runs to
# completion on the event loop without interleaving with another request.


@router.post(
    "/counter/increment",
    response_model=CounterResponse,
    responses=_BAD_REQUEST,
    summary="Increment the durable counter",
)
async def increment_counter(
    payload: dict[str, Any] | list[Any] | None = Body(default=None),
    services: Services = Depends(get_services),
) -> CounterResponse:
    """Add one to the counter; the body must be absent or an empty `{}` or `[]`."""
    if payload:
        raise InvalidPayloadError()
    value = services.counter.increment()
    return CounterResponse(
        message="Counter incremented successfully",
        counter=value,
        timestamp=format_timestamp(utc_now()),
    )


@router.post(
    "/tokens",
    status_code=status.HTTP_201_CREATED,
    response_model=TokenCreateResponse,
    responses={**_BAD_REQUEST, **_CONFLICT},
    summary="Open a token for a service request",
)
async def create_token(
    req: TokenCreateRequest,
    services: Services = Depends(get_services),
) -> TokenCreateResponse:
    record = services.tokens.create(
        service_request_id=req.service_request_id,
        request_type=req.request_type,
        requested_by=req.requested_by,
    )
    return TokenCreateResponse(message="Token created successfully", **record)


@router.post(
    "/tokens/{token_number}/close",
    response_model=TokenCloseResponse,
    responses=_NOT_FOUND,
    summary="Close a token",
)
async def close_token(
    token_number: str,
    services: Services = Depends(get_services),
) -> TokenCloseResponse:
    record = services.tokens.close(token_number)
    return TokenCloseResponse(message="Token closed successfully", **record)


@router.post(
    "/expiring-tokens",
    status_code=status.HTTP_201_CREATED,
    response_model=ExpiringTokenCreateResponse,
    responses={**_BAD_REQUEST, **_CONFLICT},
    summary="Open a token that expires after a fixed window",
)
async def create_expiring_token(
    req: TokenCreateRequest,
    services: Services = Depends(get_services),
) -> ExpiringTokenCreateResponse:
    record = services.expiring_tokens.create(
        service_request_id=req.service_request_id,
        request_type=req.request_type,
        requested_by=req.requested_by,
    )
    return ExpiringTokenCreateResponse(message="Token created successfully", **record)


@router.post(
    "/expiring-tokens/{token_number}/close",
    response_model=TokenCloseResponse,
    responses=_NOT_FOUND,
    summary="Close (and delete) an expiring token",
)
async def close_expiring_token(
    token_number: str,
    services: Services = Depends(get_services),
) -> TokenCloseResponse:
    """Expired tokens are removed and reported as not found."""
    record = services.expiring_tokens.close(token_number)
    return TokenCloseResponse(message="Token closed and deleted successfully", **record)
