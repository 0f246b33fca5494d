"""JSON-line logging shared by the service and the smoke runner.

Every line is one object: `ts`, `level`, `logger`, `service`, `event`,
`message`, then whatever the call site passed through `extra=`. Call sites
name the event explicitly (`extra={"event": "token_create", ...}`); lines
without one get an event derived from the message (`"store.reset"` ->
`"store_reset"`), so every line can be filtered on `event`.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from typing import Any

SERVICE_NAME = "tokenkeeper"

# Everything a bare LogRecord already carries; the rest arrived via `extra=`.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def _event_name(message: str) -> str:
    return message.strip().replace(".", "_").replace(" ", "_").lower()


class JsonFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        message = record.getMessage()
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "service": SERVICE_NAME,
            "event": getattr(record, "event", None) or _event_name(message),
            "message": message,
        }
        extras = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS and k not in payload}
        payload.update(extras)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: str | int | None = None) -> None:
    """Attach the JSON handler to the root logger once.

    `level` defaults to LOG_LEVEL (INFO). uvicorn's loggers lose their own
    handlers and propagate to root, so server and request lines share a format.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)
    root.setLevel(level)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        lg = logging.getLogger(name)
        lg.handlers.clear()
        lg.setLevel(level)
        lg.propagate = True


def get_logger(name: str) -> logging.Logger:
    """Return the `tokenkeeper.<name>` logger."""
    return logging.getLogger(f"{SERVICE_NAME}.{name}")
