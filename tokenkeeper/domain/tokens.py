from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

__all__ = [
    "TOKEN_PREFIX",
    "EXPIRING_TOKEN_PREFIX",
    "SEQUENCE_WIDTH",
    "EXPIRY_HOURS",
    "utc_now",
    "format_timestamp",
    "parse_timestamp",
    "format_token_number",
    "parse_sequence",
    "next_sequence",
    "expires_at_for",
    "is_expired",
]

TOKEN_PREFIX = "TKN"
EXPIRING_TOKEN_PREFIX = "ETKN"
SEQUENCE_WIDTH = 6
EXPIRY_HOURS = 24


# ------------------------
# Time
# ------------------------

def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def format_timestamp(dt: datetime) -> str:
    """Render `dt` as UTC ISO-8601 with millisecond precision and a `Z` suffix."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    text = dt.astimezone(UTC).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


# ------------------------
# Token numbers
# ------------------------

def format_token_number(prefix: str, sequence: int) -> str:
    """Build a display id such as `TKN-000042`.

    Sequences past 999999 simply grow wider.
    """
    if sequence < 1:
        raise ValueError("sequence must be >= 1")
    return f"{prefix}-{sequence:0{SEQUENCE_WIDTH}d}"


def parse_sequence(prefix: str, token_number: str) -> int | None:
    """Return the numeric suffix of `token_number`, or None if it does not match."""
    m = re.fullmatch(rf"{re.escape(prefix)}-(\d+)", token_number or "")
    return int(m.group(1)) if m else None


def next_sequence(prefix: str, records: Mapping[str, Mapping[str, Any]]) -> int:
    """First sequence number to hand out for a registry loaded from `records`.

    Seeds from the larger of the entry count and the highest persisted suffix,
    so numbers stay unique even after entries were removed.
    """
    suffixes: Iterable[int | None] = (
        parse_sequence(prefix, str(rec.get("tokenNumber", "")))
        for rec in records.values()
        if isinstance(rec, Mapping)
    )
    highest = max((s for s in suffixes if s is not None), default=0)
    return max(len(records), highest) + 1


# ------------------------
# Expiry
# ------------------------

def expires_at_for(created_at: datetime, hours: int = EXPIRY_HOURS) -> datetime:
    return created_at + timedelta(hours=hours)


def is_expired(record: Mapping[str, Any], now: datetime) -> bool:
    """A record is live while `now < expiresAt`; anything else is expired.

    Records with a missing or unreadable `expiresAt` count as expired.
    """
    raw = record.get("expiresAt")
    if not isinstance(raw, str):
        return True
    try:
        expires_at = parse_timestamp(raw)
    except ValueError:
        return True
    return now >= expires_at
