"""Translate service errors and payload validation failures into JSON bodies."""
from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..domain.errors import ConflictError, InvalidPayloadError, NotFoundError, RegistryError
from ..domain.tokens import format_timestamp, utc_now
from ..logging_conf import get_logger

logger = get_logger("api.errors")

_STATUS_BY_ERROR: dict[type[RegistryError], int] = {
    InvalidPayloadError: status.HTTP_400_BAD_REQUEST,
    ConflictError: status.HTTP_409_CONFLICT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
}


def error_body(message: str, **fields) -> dict:
    return {"message": message, **fields, "timestamp": format_timestamp(utc_now())}


def status_for(exc: RegistryError) -> int:
    for cls, code in _STATUS_BY_ERROR.items():
        if isinstance(exc, cls):
            return code
    return status.HTTP_400_BAD_REQUEST


async def registry_error_handler(request: Request, exc: RegistryError) -> JSONResponse:
    code = status_for(exc)
    logger.info(
        "request.rejected",
        extra={
            "event": "request_rejected",
            "path": request.url.path,
            "status_code": code,
            "error_code": exc.code,
            "request_id": getattr(request.state, "request_id", None),
        },
    )
    return JSONResponse(status_code=code, content=error_body(exc.message, **exc.details))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report any schema failure as the plain 400 payload error."""
    fields = sorted({".".join(str(p) for p in err.get("loc", ())[1:]) for err in exc.errors()} - {""})
    return await registry_error_handler(request, InvalidPayloadError(invalidFields=fields))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RegistryError, registry_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
