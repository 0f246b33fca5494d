from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any

from ..domain.errors import ConflictError, NotFoundError
from ..domain.status import TokenStatus
from ..domain.tokens import TOKEN_PREFIX, format_timestamp, format_token_number, next_sequence, utc_now
from ..logging_conf import get_logger
from ..storage import JsonStore
from ._registry import drop_malformed, find_by_token_number, require_fields

__all__ = ["TokenService"]

logger = get_logger("service.tokens")


class TokenService:
    """Non-expiring tokens keyed by service request id.

    Records are never removed: closing a token flips its status to CLOSED and
    stamps `closedAt`.
    """

    def __init__(self, store: JsonStore, clock: Callable[[], datetime] = utc_now) -> None:
        self._store = store
        self._clock = clock
        self._tokens: dict[str, dict[str, Any]] = store.load()
        dropped = drop_malformed(self._tokens)
        if dropped:
            logger.warning(
                "tokens.drop_malformed",
                extra={"event": "tokens_drop_malformed", "service_request_ids": dropped},
            )
            self._store.save(self._tokens)
        self._next_seq = next_sequence(TOKEN_PREFIX, self._tokens)
        logger.info(
            "tokens.load",
            extra={"event": "tokens_load", "count": len(self._tokens), "next_seq": self._next_seq},
        )

    def __len__(self) -> int:
        return len(self._tokens)

    def get(self, service_request_id: str) -> dict[str, Any] | None:
        """Return a copy of the record for `service_request_id`, or None."""
        record = self._tokens.get(service_request_id)
        return dict(record) if record is not None else None

    def create(self, *, service_request_id: str, request_type: str, requested_by: str) -> dict[str, Any]:
        """Open a new token for `service_request_id`.

        Raises:
            InvalidPayloadError: a field is missing or empty.
            ConflictError: the request id already has a token, open or closed.
        """
        require_fields(
            serviceRequestId=service_request_id,
            requestType=request_type,
            requestedBy=requested_by,
        )

        existing = self._tokens.get(service_request_id)
        if existing is not None:
            raise ConflictError(
                existingTokenNumber=existing["tokenNumber"],
                status=existing.get("status"),
            )

        token_number = format_token_number(TOKEN_PREFIX, self._next_seq)
        self._next_seq += 1
        record = {
            "tokenNumber": token_number,
            "serviceRequestId": service_request_id,
            "requestType": request_type,
            "requestedBy": requested_by,
            "status": TokenStatus.OPEN.value,
            "createdAt": format_timestamp(self._clock()),
        }
        self._tokens[service_request_id] = record
        self._store.save(self._tokens)

        logger.info(
            "token.create",
            extra={
                "event": "token_create",
                "token_number": token_number,
                "service_request_id": service_request_id,
            },
        )
        return dict(record)

    def close(self, token_number: str) -> dict[str, Any]:
        """Mark the token CLOSED and stamp `closedAt`.

        Closing an already closed token succeeds again and refreshes `closedAt`.

        Raises:
            NotFoundError: no record carries `token_number`.
        """
        found = find_by_token_number(self._tokens, token_number)
        if found is None:
            raise NotFoundError(tokenNumber=token_number)

        _, record = found
        record["status"] = TokenStatus.CLOSED.value
        record["closedAt"] = format_timestamp(self._clock())
        self._store.save(self._tokens)

        logger.info(
            "token.close",
            extra={"event": "token_close", "token_number": token_number},
        )
        return dict(record)
