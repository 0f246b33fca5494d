from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class CheckResult:
    """Outcome of one HTTP call made during the smoke run."""

    name: str
    expected_status: int
    status: int
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == self.expected_status


class SmokeError(RuntimeError):
    """Raised when the smoke flow cannot proceed (e.g., health never ready)."""


class UnexpectedResponseError(SmokeError):
    """Raised when a response is missing a field later steps depend on."""
