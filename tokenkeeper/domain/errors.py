from __future__ import annotations

from typing import Any

__all__ = [
    "RegistryError",
    "InvalidPayloadError",
    "ConflictError",
    "NotFoundError",
]


class RegistryError(ValueError):
    """Base class for errors the services report back to a caller.

    `code` is a stable machine code; `details` holds the extra response fields
    (e.g. the existing token number on a conflict).
    """

    code: str = "registry_error"
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None, **details: Any) -> None:
        self.message = message or self.default_message
        self.details: dict[str, Any] = details
        super().__init__(self.message)


class InvalidPayloadError(RegistryError):
    code = "invalid_payload"
    default_message = "Invalid request payload"


class ConflictError(RegistryError):
    code = "conflict"
    default_message = "Token already exist"


class NotFoundError(RegistryError):
    code = "not_found"
    default_message = "Token does not exist"
