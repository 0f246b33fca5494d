"""Shared pytest fixtures."""
from __future__ import annotations

import os
import tempfile
from datetime import UTC, datetime, timedelta

import pytest

# tokenkeeper.main builds a module-level app on import; keep its documents out
# of the working tree.
os.environ.setdefault("TOKENKEEPER_DATA_DIR", tempfile.mkdtemp(prefix="tokenkeeper-tests-"))

from fastapi.testclient import TestClient  # noqa: E402

from tokenkeeper.config import Settings  # noqa: E402
from tokenkeeper.main import create_app  # noqa: E402
from tokenkeeper.storage import JsonStore  # noqa: E402


class FakeClock:
    """A clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 10, 18, 9, 0, 0, tzinfo=UTC))


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(data_dir=tmp_path)


@pytest.fixture
def tokens_store(tmp_path) -> JsonStore:
    return JsonStore(tmp_path / "tokens.json", {})


@pytest.fixture
def expiring_store(tmp_path) -> JsonStore:
    return JsonStore(tmp_path / "expiringTokens.json", {})


@pytest.fixture
def client(settings, clock):
    """TestClient over an app whose documents live in tmp_path."""
    with TestClient(create_app(settings, clock=clock)) as c:
        yield c


@pytest.fixture
def payload():
    def _make(service_request_id: str = "SR1") -> dict[str, str]:
        return {
            "serviceRequestId": service_request_id,
            "requestType": "REPAIR",
            "requestedBy": "alice",
        }

    return _make
