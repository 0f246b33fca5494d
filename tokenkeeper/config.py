from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

__all__ = [
    "Settings",
    "get_data_dir_from_env",
    "get_port_from_env",
    "load_settings",
]

COUNTER_FILE = "counter.json"
TOKENS_FILE = "tokens.json"
EXPIRING_TOKENS_FILE = "expiringTokens.json"


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the service."""

    data_dir: Path
    host: str = "0.0.0.0"
    port: int = 3000

    @property
    def counter_path(self) -> Path:
        return self.data_dir / COUNTER_FILE

    @property
    def tokens_path(self) -> Path:
        return self.data_dir / TOKENS_FILE

    @property
    def expiring_tokens_path(self) -> Path:
        return self.data_dir / EXPIRING_TOKENS_FILE


def get_data_dir_from_env() -> Path:
    """Return TOKENKEEPER_DATA_DIR, defaulting to the working directory."""
    return Path(os.getenv("TOKENKEEPER_DATA_DIR", "."))


def get_port_from_env() -> int:
    raw = os.getenv("PORT", "3000")
    try:
        port = int(raw, 10)
    except ValueError as e:
        raise ValueError("PORT must be an integer") from e
    if not (0 < port < 65536):
        raise ValueError("PORT must be in [1,65535]")
    return port


def load_settings() -> Settings:
    return Settings(
        data_dir=get_data_dir_from_env(),
        host=os.getenv("HOST", "0.0.0.0"),
        port=get_port_from_env(),
    )
