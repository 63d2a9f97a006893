from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from chat_relay.api.middleware.correlation_id import CorrelationIdMiddleware
from chat_relay.api.middleware.timing import RequestTimingMiddleware
from chat_relay.api.v1.routers import admin, auth, files, health, messages, pages, ws
from chat_relay.application.exceptions import (
    ForbiddenError,
    NotFoundError,
    PayloadTooLargeError,
    StorageError,
    ValidationError,
)
from chat_relay.application.ports.clock import Clock
from chat_relay.application.state import build_state
from chat_relay.config import Settings, settings as default_settings
from chat_relay.domain.value_objects.enums import DeliveryMode
from chat_relay.workers.retention_sweeper import RetentionSweeper

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    sweeper = RetentionSweeper(app.state.chat)
    await sweeper.start()
    app.state.sweeper = sweeper

    yield

    await sweeper.stop()
    with app.state.chat.lock:
        app.state.chat.dispatcher.close_all()


def create_app(app_settings: Settings | None = None, clock: Clock | None = None) -> FastAPI:
    cfg = app_settings or default_settings
    app = FastAPI(
        title="Chat Relay",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.chat = build_state(cfg, clock)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(messages.router)
    app.include_router(files.router)
    app.include_router(admin.router)
    if app.state.chat.delivery_mode is DeliveryMode.PUSH:
        app.include_router(ws.router)
    app.include_router(pages.build_router(cfg.STATIC_DIR))
    if cfg.STATIC_DIR:
        app.mount("/static", StaticFiles(directory=cfg.STATIC_DIR), name="static")

    logger.info(
        "Chat relay configured (mode=%s, max_retained=%d, trim=%s)",
        cfg.DELIVERY_MODE, cfg.LEDGER_MAX_RETAINED, cfg.LEDGER_TRIM_STRATEGY,
    )
    return app


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return _error(404, exc.detail)

    @app.exception_handler(ForbiddenError)
    async def _forbidden(_req: Request, exc: ForbiddenError) -> JSONResponse:
        return _error(403, exc.detail)

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return _error(400, exc.detail)

    @app.exception_handler(PayloadTooLargeError)
    async def _too_large(_req: Request, exc: PayloadTooLargeError) -> JSONResponse:
        return _error(400, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def _bad_request(_req: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(400, "Invalid request body")

    @app.exception_handler(StorageError)
    async def _storage(_req: Request, exc: StorageError) -> JSONResponse:
        logger.error("Storage failure: %s", exc.detail)
        return _error(500, "Internal server error")

    @app.exception_handler(Exception)
    async def _unhandled(req: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", req.method, req.url.path)
        return _error(500, "Internal server error")
