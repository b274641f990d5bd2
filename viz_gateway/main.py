"""
FastAPI application factory + lifespan.

This is the **administrative gateway** for visualizations:
- REST API to create, query and delete visualizations.
- One DatabaseManager and one rendering-service publisher per process,
  built at startup and disposed at shutdown.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from viz_gateway.api.v1 import api_router
from viz_gateway.core.config import settings
from viz_gateway.core.database import DatabaseManager
from viz_gateway.core.log_setup import configure_logging
from viz_gateway.services.orchestrator import VisualizationOrchestrator
from viz_gateway.services.publisher import (
    GrafanaPublisher,
    load_endpoint,
)
from viz_gateway.services.store import SQLVisualizationStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: wire store + publisher into the orchestrator.
    Shutdown: close DB connections.
    """
    configure_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    logger.info(f"[App] Starting {settings.APP_NAME} ({settings.APP_ENV})")

    endpoint = load_endpoint(
        Path(settings.RENDERING_SERVICE_CONFIG), settings.RENDERING_SERVICE_ID,
    )
    if endpoint is None or not endpoint.enabled:
        raise RuntimeError(
            f"Rendering service '{settings.RENDERING_SERVICE_ID}' is not "
            f"configured or disabled in {settings.RENDERING_SERVICE_CONFIG}"
        )

    db_manager = DatabaseManager(settings.db_url, echo=settings.DEBUG)
    if settings.DB_CREATE_SCHEMA:
        await db_manager.create_all()
        logger.info("[App] Database schema ensured")

    app.state.db_manager = db_manager
    app.state.rendering_endpoint = endpoint
    app.state.orchestrator = VisualizationOrchestrator(
        store=SQLVisualizationStore(db_manager),
        publisher=GrafanaPublisher(endpoint),
    )
    logger.info(f"[App] Publishing to {endpoint.name} at {endpoint.base_url}")

    yield

    logger.info("[App] Shutting down")
    app.state.orchestrator = None
    await db_manager.close()
    logger.info("[App] DB connections closed")


def create_fastapi_app() -> FastAPI:
    """Application factory for FastAPI."""
    app = FastAPI(
        title="Visualization Gateway API",
        description="Provisions dashboards across the database and the rendering service",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/api/docs" if settings.DEBUG else None,
        redoc_url="/api/redoc" if settings.DEBUG else None,
    )

    app.include_router(api_router)

    @app.get("/")
    async def root():
        return {
            "app": settings.APP_NAME,
            "version": "1.0.0",
            "status": "running",
            "docs": "/api/docs" if settings.DEBUG else "disabled",
        }

    return app


# Module-level instance for ``uvicorn viz_gateway.main:app``
app = create_fastapi_app()
