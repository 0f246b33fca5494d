from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any

from ..domain.errors import ConflictError, NotFoundError
from ..domain.status import TokenStatus
from ..domain.tokens import (
    EXPIRING_TOKEN_PREFIX,
    EXPIRY_HOURS,
    expires_at_for,
    format_timestamp,
    format_token_number,
    is_expired,
    next_sequence,
    utc_now,
)
from ..logging_conf import get_logger
from ..storage import JsonStore
from ._registry import find_by_token_number, is_well_formed, require_fields

__all__ = ["ExpiringTokenService"]

logger = get_logger("service.expiring_tokens")


class ExpiringTokenService:
    """Tokens that live for a fixed window of `EXPIRY_HOURS` after creation.

    Lifecycle:
      OPEN (live) -> closed by the caller -> record deleted, reported CLOSED
      OPEN (live) -> TTL elapses          -> record deleted on next touch,
                                             reported as not found

    Expired records are swept once when the registry is built and lazily
    whenever a request runs into one. A CLOSED status is never persisted.
    """

    ttl_hours = EXPIRY_HOURS

    def __init__(self, store: JsonStore, clock: Callable[[], datetime] = utc_now) -> None:
        self._store = store
        self._clock = clock
        self._tokens: dict[str, dict[str, Any]] = store.load()
        self._next_seq = next_sequence(EXPIRING_TOKEN_PREFIX, self._tokens)
        removed = self.prune_expired()
        logger.info(
            "expiring_tokens.load",
            extra={
                "event": "expiring_tokens_load",
                "count": len(self._tokens),
                "pruned": removed,
                "next_seq": self._next_seq,
            },
        )

    def __len__(self) -> int:
        return len(self._tokens)

    def get(self, service_request_id: str) -> dict[str, Any] | None:
        """Return a copy of the live record for `service_request_id`, or None.

        An expired record found here is deleted and the document saved.
        """
        record = self._tokens.get(service_request_id)
        if record is None:
            return None
        if is_expired(record, self._clock()):
            del self._tokens[service_request_id]
            self._store.save(self._tokens)
            logger.info(
                "expiring_token.expired",
                extra={
                    "event": "expiring_token_expired",
                    "token_number": record.get("tokenNumber"),
                    "service_request_id": service_request_id,
                },
            )
            return None
        return dict(record)

    def prune_expired(self) -> int:
        """Delete every expired record, persist, and return how many went."""
        now = self._clock()
        expired = [
            key
            for key, record in self._tokens.items()
            if not is_well_formed(record) or is_expired(record, now)
        ]
        for key in expired:
            del self._tokens[key]
        self._store.save(self._tokens)
        if expired:
            logger.info(
                "expiring_tokens.prune",
                extra={"event": "expiring_tokens_prune", "removed": len(expired)},
            )
        return len(expired)

    def create(self, *, service_request_id: str, request_type: str, requested_by: str) -> dict[str, Any]:
        """Open a token valid for `ttl_hours`.

        An expired record under the same request id is overwritten.

        Raises:
            InvalidPayloadError: a field is missing or empty.
            ConflictError: a live token already exists for the request id.
        """
        require_fields(
            serviceRequestId=service_request_id,
            requestType=request_type,
            requestedBy=requested_by,
        )

        now = self._clock()
        existing = self._tokens.get(service_request_id)
        if existing is not None:
            if not is_expired(existing, now):
                raise ConflictError(
                    existingTokenNumber=existing["tokenNumber"],
                    expiresAt=existing["expiresAt"],
                )
            logger.info(
                "expiring_token.replace_expired",
                extra={
                    "event": "expiring_token_replace_expired",
                    "token_number": existing.get("tokenNumber"),
                    "service_request_id": service_request_id,
                },
            )

        token_number = format_token_number(EXPIRING_TOKEN_PREFIX, self._next_seq)
        self._next_seq += 1
        record = {
            "tokenNumber": token_number,
            "serviceRequestId": service_request_id,
            "requestType": request_type,
            "requestedBy": requested_by,
            "status": TokenStatus.OPEN.value,
            "createdAt": format_timestamp(now),
            "expiresAt": format_timestamp(expires_at_for(now, self.ttl_hours)),
        }
        self._tokens[service_request_id] = record
        self._store.save(self._tokens)

        logger.info(
            "expiring_token.create",
            extra={
                "event": "expiring_token_create",
                "token_number": token_number,
                "service_request_id": service_request_id,
                "expires_at": record["expiresAt"],
            },
        )
        return {**record, "timeoutHours": self.ttl_hours}

    def close(self, token_number: str) -> dict[str, Any]:
        """Close a live token, which deletes it.

        Raises:
            NotFoundError: no record carries `token_number`, or it has expired.
                An expired record is deleted before the error is raised.
        """
        found = find_by_token_number(self._tokens, token_number)
        if found is None:
            raise NotFoundError(tokenNumber=token_number)

        key, record = found
        now = self._clock()
        del self._tokens[key]
        self._store.save(self._tokens)

        if is_expired(record, now):
            logger.info(
                "expiring_token.expired",
                extra={"event": "expiring_token_expired", "token_number": token_number},
            )
            raise NotFoundError(tokenNumber=token_number)

        logger.info(
            "expiring_token.close",
            extra={"event": "expiring_token_close", "token_number": token_number},
        )
        return {
            "tokenNumber": record["tokenNumber"],
            "status": TokenStatus.CLOSED.value,
            "closedAt": format_timestamp(now),
        }
