from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

from ..logging_conf import get_logger

__all__ = ["JsonStore", "load_document", "save_document"]

logger = get_logger("storage.json")


def save_document(path: str | Path, document: dict[str, Any]) -> None:
    """Overwrite the document at `path` with `document`.

    I/O errors are not caught.
    """
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")


def _reset(path: Path, default: dict[str, Any], reason: str) -> dict[str, Any]:
    fresh = copy.deepcopy(default)
    save_document(path, fresh)
    logger.warning(
        "store.reset",
        extra={"event": "store_reset", "path": str(path), "reason": reason},
    )
    return copy.deepcopy(default)


def load_document(path: str | Path, default: dict[str, Any]) -> dict[str, Any]:
    """Read the JSON object at `path`.

    A missing, empty, unparseable or non-object document is replaced on disk by
    `default`, and a copy of `default` is returned. The caller never sees an
    error for a bad document.
    """
    p = Path(path)
    if not p.exists():
        return _reset(p, default, "missing")

    try:
        content = p.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError):
        return _reset(p, default, "unreadable")

    if not content:
        return _reset(p, default, "empty")

    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        return _reset(p, default, "corrupt")

    if not isinstance(data, dict):
        return _reset(p, default, "not_an_object")
    return data


class JsonStore:
    """A single named JSON document with a schema default."""

    def __init__(self, path: str | Path, default: dict[str, Any]) -> None:
        self.path = Path(path)
        self.default = copy.deepcopy(default)

    def load(self) -> dict[str, Any]:
        return load_document(self.path, self.default)

    def save(self, document: dict[str, Any]) -> None:
        save_document(self.path, document)

    def __repr__(self) -> str:
        return f"JsonStore({str(self.path)!r})"
