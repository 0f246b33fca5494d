"""Helpers shared by the two token registries."""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..domain.errors import InvalidPayloadError

__all__ = ["require_fields", "find_by_token_number", "is_well_formed", "drop_malformed"]


def require_fields(**fields: Any) -> None:
    """Raise InvalidPayloadError if any field is missing or falsy."""
    missing = [name for name, value in fields.items() if not value]
    if missing:
        raise InvalidPayloadError(invalidFields=missing)


def find_by_token_number(
    records: Mapping[str, dict[str, Any]], token_number: str
) -> tuple[str, dict[str, Any]] | None:
    """Return `(service_request_id, record)` for `token_number`, or None."""
    for key, record in records.items():
        if isinstance(record, Mapping) and record.get("tokenNumber") == token_number:
            return key, record
    return None


def is_well_formed(record: Any) -> bool:
    """A stored record must be an object carrying a string `tokenNumber`."""
    return isinstance(record, dict) and isinstance(record.get("tokenNumber"), str)


def drop_malformed(records: dict[str, Any]) -> list[str]:
    """Remove records that are not well formed; return the removed keys."""
    bad = [key for key, record in records.items() if not is_well_formed(record)]
    for key in bad:
        del records[key]
    return bad
