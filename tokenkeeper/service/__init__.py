"""Service layer: one object per document, built once at startup."""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from ..config import Settings
from ..domain.tokens import utc_now
from ..storage import JsonStore
from .counter_service import COUNTER_DEFAULT, CounterService
from .expiring_token_service import ExpiringTokenService
from .token_service import TokenService

__all__ = [
    "Services",
    "build_services",
    "CounterService",
    "TokenService",
    "ExpiringTokenService",
]


@dataclass
class Services:
    counter: CounterService
    tokens: TokenService
    expiring_tokens: ExpiringTokenService


def build_services(settings: Settings, clock: Callable[[], datetime] = utc_now) -> Services:
    """Load (and heal or prune) every document, then hand back the services."""
    return Services(
        counter=CounterService(JsonStore(settings.counter_path, COUNTER_DEFAULT)),
        tokens=TokenService(JsonStore(settings.tokens_path, {}), clock=clock),
        expiring_tokens=ExpiringTokenService(JsonStore(settings.expiring_tokens_path, {}), clock=clock),
    )
