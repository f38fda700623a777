"""FastAPI application factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from capgate.config.logging import setup_logging
from capgate.config.settings import get_settings
from capgate.storage.kv_store import create_kv_store
from capgate.web.middleware import CORS_HEADERS, CORSHeadersMiddleware, RequestIDMiddleware
from capgate.web.routes.api import INTERNAL_ERROR
from capgate.web.routes.api import router as api_router
from capgate.web.routes.pages import router as pages_router

if TYPE_CHECKING:
    from capgate.storage.kv_store import KeyValueStore

logger = structlog.get_logger(__name__)


def create_app(kv_store: KeyValueStore | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    setup_logging(log_level=settings.log_level, json_output=not settings.debug)

    app = FastAPI(
        title="capgate",
        description="Proof-of-work CAPTCHA challenge and token service",
        version="0.1.0",
        redirect_slashes=False,
    )
    app.state.kv_store = kv_store if kv_store is not None else create_kv_store(settings)

    # Errors render as {"error": ...} to match the widget protocol
    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    # Unparseable or mistyped bodies are client errors, not 422s
    @app.exception_handler(RequestValidationError)
    async def body_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("invalid_request_body", path=request.url.path, errors=len(exc.errors()))
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    # Anything a route did not handle itself; runs outside the middleware stack
    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_error", path=request.url.path, error=str(exc), exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"error": INTERNAL_ERROR},
            headers=CORS_HEADERS,
        )

    # Last added runs first
    app.add_middleware(CORSHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.include_router(api_router)
    app.include_router(pages_router)

    logger.info("app_created", store_backend=settings.store_backend.value)
    return app
