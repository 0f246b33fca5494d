"""FastAPI app factory: health endpoint, request logging and the /v1 API."""
from __future__ import annotations

import os
import time
from collections.abc import Callable
from datetime import datetime
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from tokenkeeper.api import register_error_handlers
from tokenkeeper.api import router as api_router
from tokenkeeper.config import Settings, load_settings
from tokenkeeper.domain.tokens import utc_now
from tokenkeeper.logging_conf import get_logger, setup_logging
from tokenkeeper.service import build_services

# Configure logging before anything else.
setup_logging()
logger = get_logger("app")


def create_app(settings: Settings | None = None, clock: Callable[[], datetime] = utc_now) -> FastAPI:
    """Build the app.

    Storage documents are loaded, healed and pruned here, before the app can
    accept a single request.
    """
    settings = settings or load_settings()
    app = FastAPI(
        title="Token Keeper",
        version=os.getenv("APP_VERSION", "0.1.0"),
    )
    app.state.settings = settings
    app.state.services = build_services(settings, clock=clock)
    logger.info(
        "storage.ready",
        extra={
            "event": "storage_ready",
            "data_dir": str(settings.data_dir),
            "counter": app.state.services.counter.value,
            "tokens": len(app.state.services.tokens),
            "expiring_tokens": len(app.state.services.expiring_tokens),
        },
    )

    @app.on_event("startup")
    async def _on_startup() -> None:
        logger.info("startup", extra={"event": "startup", "port": settings.port})

    @app.on_event("shutdown")
    async def _on_shutdown() -> None:
        logger.info("shutdown", extra={"event": "shutdown"})

    @app.middleware("http")
    async def request_logger(request: Request, call_next: Callable[[Request], Response]):
        """JSON request logging with a correlation id.

        - Propagates X-Request-ID from the client or mints one
        - Logs start and end events with method/path/status/elapsed_ms
        - Echoes X-Request-ID on the response
        """
        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        request.state.request_id = request_id

        start = time.perf_counter()
        logger.info(
            "request.start",
            extra={
                "event": "request_start",
                "method": request.method,
                "path": request.url.path,
                "request_id": request_id,
            },
        )
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.exception(
                "request.error",
                extra={
                    "event": "request_error",
                    "path": request.url.path,
                    "method": request.method,
                    "request_id": request_id,
                },
            )
            raise exc
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000.0

        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request.end",
            extra={
                "event": "request_end",
                "status_code": response.status_code,
                "elapsed_ms": round(elapsed_ms, 2),
                "request_id": request_id,
            },
        )
        return response

    @app.get("/health", summary="Liveness/readiness check")
    async def health() -> JSONResponse:
        return JSONResponse(content={"ok": True})

    register_error_handlers(app)
    app.include_router(api_router)

    return app


def run() -> None:
    """Serve the app with uvicorn on the configured host/port."""
    import uvicorn

    settings = app.state.settings
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


# ASGI entrypoint for uvicorn: `uvicorn tokenkeeper.main:app --port 3000`
app = create_app()
