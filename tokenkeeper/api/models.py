from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..domain.status import TokenStatus


class CamelModel(BaseModel):
    """Wire models speak camelCase; Python code uses snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TokenCreateRequest(CamelModel):
    """Payload for opening a token (expiring or not)."""
    service_request_id: str = Field(..., min_length=1)
    request_type: str = Field(..., min_length=1)
    requested_by: str = Field(..., min_length=1)


class CounterResponse(CamelModel):
    message: str
    counter: int
    timestamp: str


class TokenCreateResponse(CamelModel):
    message: str
    token_number: str
    service_request_id: str
    status: TokenStatus
    created_at: str


class ExpiringTokenCreateResponse(TokenCreateResponse):
    timeout_hours: int
    expires_at: str


class TokenCloseResponse(CamelModel):
    message: str
    token_number: str
    status: TokenStatus
    closed_at: str


class ErrorResponse(CamelModel):
    """Shape shared by every 4xx body; conflict/not-found add their own fields."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    message: str
    timestamp: str
    existing_token_number: Optional[str] = None
    token_number: Optional[str] = None
