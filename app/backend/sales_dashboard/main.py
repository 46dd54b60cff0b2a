"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import sales_dashboard.models.entities  # noqa: F401
from sales_dashboard.api.router import api_router
from sales_dashboard.core.auth import ensure_default_admin
from sales_dashboard.core.config import Settings, get_settings
from sales_dashboard.core.errors import register_error_handlers
from sales_dashboard.core.logging import configure_logging
from sales_dashboard.db.base import Base
from sales_dashboard.db.session import SessionLocal, engine

logger = logging.getLogger(__name__)


def bootstrap_database(settings: Settings) -> None:
    """Create missing tables and the first administrator."""

    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        ensure_default_admin(session, settings)
    finally:
        session.close()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure FastAPI application."""

    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings.log_level)
        logger.info("Starting %s (%s, targets from %s)", settings.app_name, settings.app_env, settings.target_source)
        if settings.bootstrap_on_startup:
            bootstrap_database(settings)
        try:
            yield
        finally:
            engine.dispose()
            logger.info("Database engine disposed; shutdown complete")

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        openapi_url=f"{settings.api_prefix}/openapi.json",
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/", tags=["system"])
    def root() -> dict[str, str]:
        return {"service": settings.app_name, "status": "running"}

    return app


app = create_app()
