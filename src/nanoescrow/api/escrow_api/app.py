"""FastAPI application configuration (Escrow API)."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    generate_latest,
    multiprocess,
)

from ...application.escrow.pricing import build_pricing_policy
from ...envs.escrow_env import Settings, get_settings, log_settings
from ...infrastructure.escrow.channel_state_store_impl import ChannelStateStoreImpl
from .dependencies import get_database_client_with_settings, get_key_value_store
from .routers import calls, channels

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure FastAPI application."""
    if settings is None:
        settings = get_settings()
    # Fails fast on a pricing configuration that cannot price any call.
    pricing_policy = build_pricing_policy(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log_settings(settings)
        db_client = get_database_client_with_settings(settings)
        store = get_key_value_store(db_client)
        await ChannelStateStoreImpl(store).register_scripts()
        logger.info("Registered channel state store scripts")
        yield
        await db_client.aclose()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="NanoEscrow metered call API",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.pricing_policy = pricing_policy

    app.include_router(calls.router, prefix="/api/v1")
    app.include_router(channels.router, prefix="/api/v1")

    @app.get("/metrics")
    async def metrics() -> Response:
        """Expose Prometheus metrics in text exposition format."""
        registry = REGISTRY
        if os.environ.get("PROMETHEUS_MULTIPROC_DIR"):
            # Aggregate the per-worker files written under multiple Uvicorn workers.
            registry = CollectorRegistry()
            multiprocess.MultiProcessCollector(registry)
        return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": f"Welcome to {settings.app_name} API",
            "version": settings.app_version,
            "docs": "/docs",
        }

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
            "daemon_type": settings.daemon_type,
        }

    return app
