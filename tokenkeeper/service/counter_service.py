from __future__ import annotations

from ..logging_conf import get_logger
from ..storage import JsonStore

__all__ = ["CounterService", "COUNTER_DEFAULT"]

logger = get_logger("service.counter")

COUNTER_DEFAULT = {"counter": 0}


class CounterService:
    """A single durable integer that only ever goes up."""

    def __init__(self, store: JsonStore) -> None:
        self._store = store
        self._data = store.load()
        value = self._data.get("counter")
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            logger.warning(
                "counter.reset",
                extra={"event": "counter_reset", "path": str(store.path), "found": value},
            )
            self._data = dict(COUNTER_DEFAULT)
            self._store.save(self._data)

    @property
    def value(self) -> int:
        return self._data["counter"]

    def increment(self) -> int:
        """Add one, persist the whole document and return the new value."""
        self._data["counter"] += 1
        self._store.save(self._data)
        logger.info(
            "counter.increment",
            extra={"event": "counter_increment", "counter": self._data["counter"]},
        )
        return self._data["counter"]
