from __future__ import annotations

from enum import Enum

__all__ = ["TokenStatus"]


class TokenStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"
