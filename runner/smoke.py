#!/usr/bin/env python3
"""End-to-end smoke run against a live server.

Steps:
- wait for server health
- increment the counter (and send a bad payload)
- create a token, repeat it for a conflict, close it twice, close a bogus one
- create an expiring token, repeat it, close it, close it again
- emit a compact summary and exit code
"""
from __future__ import annotations

import asyncio
import sys
from uuid import uuid4

import httpx

from runner.cli import parse_args
from runner.client import check, token_payload, wait_for_health
from runner.types import CheckResult, UnexpectedResponseError
from runner.utils import summarize
from tokenkeeper.logging_conf import get_logger, setup_logging

setup_logging()
logger = get_logger("runner")


def _token_number(result: CheckResult) -> str:
    token_number = result.body.get("tokenNumber")
    if not token_number:
        raise UnexpectedResponseError(f"{result.name}: response has no tokenNumber")
    return token_number


async def run_checks(client: httpx.AsyncClient, run_id: str) -> list[CheckResult]:
    results: list[CheckResult] = []

    results.append(await check(client, "counter.increment", "/v1/counter/increment", expected_status=200, json={}))
    results.append(
        await check(
            client, "counter.bad_payload", "/v1/counter/increment", expected_status=400, json={"by": 2}
        )
    )

    sr = f"SMOKE-{run_id}"
    created = await check(client, "token.create", "/v1/tokens", expected_status=201, json=token_payload(sr))
    results.append(created)
    token_number = _token_number(created)
    results.append(await check(client, "token.duplicate", "/v1/tokens", expected_status=409, json=token_payload(sr)))
    results.append(
        await check(client, "token.missing_field", "/v1/tokens", expected_status=400, json={"serviceRequestId": sr})
    )
    results.append(await check(client, "token.close", f"/v1/tokens/{token_number}/close", expected_status=200))
    results.append(await check(client, "token.close_again", f"/v1/tokens/{token_number}/close", expected_status=200))
    results.append(await check(client, "token.close_unknown", "/v1/tokens/TKN-UNKNOWN/close", expected_status=404))

    esr = f"SMOKE-EXP-{run_id}"
    created = await check(
        client, "expiring.create", "/v1/expiring-tokens", expected_status=201, json=token_payload(esr)
    )
    results.append(created)
    token_number = _token_number(created)
    results.append(
        await check(client, "expiring.duplicate", "/v1/expiring-tokens", expected_status=409, json=token_payload(esr))
    )
    results.append(
        await check(client, "expiring.close", f"/v1/expiring-tokens/{token_number}/close", expected_status=200)
    )
    results.append(
        await check(client, "expiring.close_again", f"/v1/expiring-tokens/{token_number}/close", expected_status=404)
    )
    return results


async def run_smoke(*, base_url: str, timeout_s: float = 20.0, run_id: str | None = None) -> int:
    await wait_for_health(base_url, timeout_s)
    async with httpx.AsyncClient(base_url=base_url, timeout=10.0) as client:
        results = await run_checks(client, run_id or uuid4().hex[:8])
    summary, exit_code = summarize(results)
    logger.info("runner.summary", extra=summary)
    return exit_code


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv or sys.argv[1:])
    code = asyncio.run(run_smoke(base_url=args.base_url, timeout_s=args.timeout, run_id=args.run_id))
    raise SystemExit(code)


if __name__ == "__main__":
    main()
