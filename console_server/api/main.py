"""FastAPI application entry point."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from console_server.api.context import AppContext
from console_server.api.middleware import AuditLoggerMiddleware
from console_server.api.routers import logs as log_router
from console_server.api.routers import process
from console_server.api.schemas import APIMessage
from console_server.config import ServerSettings, load_settings
from console_server.version import __version__

logger = logging.getLogger(__name__)


def create_app(
    context: AppContext | None = None,
    settings: ServerSettings | None = None,
) -> FastAPI:
    """Instantiate the FastAPI application with all routers."""

    if context is None:
        context = AppContext.from_settings(settings or load_settings())
    app = FastAPI(
        title="Console Server API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.context = context
    app.add_middleware(AuditLoggerMiddleware)

    app.include_router(process.router)
    app.include_router(log_router.router)

    @app.get("/healthz", response_model=APIMessage, tags=["system"])
    def healthz() -> APIMessage:
        return APIMessage(message="ok")

    static_dir = context.settings.static_dir
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="frontend")
    else:
        logger.info("Frontend directory %s not found; serving the API only", static_dir)

    return app


__all__ = ["create_app"]
