"""FastAPI app factory for the fake Healthcare API, plus /health."""
from __future__ import annotations

import os
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from healthcare_client.logging_conf import get_logger, setup_logging

from . import __version__
from .api import router as api_router
from .store import Catalog, default_catalog

setup_logging()
logger = get_logger("mock_api")


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    catalog = app.state.catalog
    logger.info(
        "startup",
        extra={"event": "startup", "projects": len(catalog.projects), "stores": len(catalog.stores)},
    )
    yield
    logger.info("shutdown", extra={"event": "shutdown"})


def create_app(catalog: Catalog | None = None, access_token: str | None = None) -> FastAPI:
    """Build the app around `catalog`, accepting only `Bearer <access_token>`.

    The token defaults to $MOCK_API_TOKEN, then "test-token".
    """
    app = FastAPI(title="Fake Healthcare API", version=__version__, lifespan=_lifespan)
    app.state.catalog = catalog if catalog is not None else default_catalog()
    app.state.access_token = access_token or os.getenv("MOCK_API_TOKEN", "test-token")

    @app.middleware("http")
    async def request_logger(request: Request, call_next: Callable[[Request], Response]):
        """Log a start and end event per request with a correlation id.

        - Reuses an incoming X-Request-ID, otherwise mints one
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
        except Exception:
            logger.exception(
                "request.error",
                extra={
                    "event": "request_error",
                    "path": request.url.path,
                    "method": request.method,
                    "request_id": request_id,
                },
            )
            raise
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

    @app.get("/health", summary="Liveness check")
    async def health() -> JSONResponse:
        return JSONResponse(content={"ok": True})

    app.include_router(api_router)

    return app


# ASGI entrypoint for uvicorn: `uvicorn mock_api.main:app --port 8000`
app = create_app()
