from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx

from runner.types import CheckResult, SmokeError
from tokenkeeper.logging_conf import get_logger

logger = get_logger("runner.client")


async def wait_for_health(base_url: str, timeout_s: float = 20.0) -> None:
    """Ping /health until it returns ok or raise after a timeout."""
    deadline = time.monotonic() + timeout_s
    async with httpx.AsyncClient(base_url=base_url, timeout=5.0) as client:
        while time.monotonic() < deadline:
            try:
                r = await client.get("/health")
                if r.status_code == 200 and r.json().get("ok") is True:
                    logger.info("health.ok", extra={"event": "health_ok"})
                    return
            except httpx.HTTPError:
                pass
            await asyncio.sleep(0.25)
    raise SmokeError("Health check did not pass within timeout")


async def check(
    client: httpx.AsyncClient,
    name: str,
    path: str,
    *,
    expected_status: int,
    json: dict[str, Any] | None = None,
) -> CheckResult:
    """POST to `path` and record whether the status matched `expected_status`."""
    r = await client.post(path, json=json)
    try:
        body = r.json()
    except ValueError:
        body = {"raw": r.text}
    result = CheckResult(name=name, expected_status=expected_status, status=r.status_code, body=body)
    log = logger.info if result.ok else logger.warning
    log(
        "check.done",
        extra={
            "event": "check_done",
            "check": name,
            "status_code": r.status_code,
            "expected_status": expected_status,
            "request_id": r.headers.get("X-Request-ID"),
        },
    )
    return result


def token_payload(service_request_id: str) -> dict[str, str]:
    return {
        "serviceRequestId": service_request_id,
        "requestType": "smoke",
        "requestedBy": "runner",
    }
