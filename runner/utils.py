from __future__ import annotations

from runner.types import CheckResult


def summarize(results: list[CheckResult]) -> tuple[dict, int]:
    """Compute summary dict and an exit code from the check results."""
    failures = [
        {
            "check": r.name,
            "expected_status": r.expected_status,
            "status": r.status,
            "body": r.body,
        }
        for r in results
        if not r.ok
    ]
    summary = {
        "component": "runner",
        "event": "summary",
        "checks": len(results),
        "passed": len(results) - len(failures),
        "failed": len(failures),
        "failures": failures,
    }
    exit_code = 0 if (results and not failures) else 1
    return summary, exit_code
