"""FastAPI application factory.

Creates and configures the retail graph API with lifespan management
for the Neo4j driver.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from fastapi import FastAPI
from fastapi.responses import ORJSONResponse

from retail_graph.adapters.neo4j.store import Neo4jGraphStore
from retail_graph.api.middleware import register_middleware
from retail_graph.api.routes.buyers import router as buyers_router
from retail_graph.api.routes.health import router as health_router
from retail_graph.api.routes.products import router as products_router
from retail_graph.api.routes.transactions import router as transactions_router
from retail_graph.log import configure_logging
from retail_graph.settings import Settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage the Neo4j driver across the app lifecycle."""
    settings: Settings = app.state.settings

    # -- Startup: create the store and attach to app state -----------------
    graph_store = Neo4jGraphStore(settings.neo4j, settings.query)
    await graph_store.ensure_schema()

    app.state.graph_store = graph_store

    logger.info("app_started", neo4j_uri=settings.neo4j.uri, database=settings.neo4j.database)

    yield

    # -- Shutdown: release connections -------------------------------------
    await graph_store.close()
    logger.info("app_stopped")


def include_routers(app: FastAPI) -> None:
    """Mount every API router on the app."""
    app.include_router(buyers_router)
    app.include_router(products_router)
    app.include_router(transactions_router)
    app.include_router(health_router)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build and return the configured FastAPI application."""
    settings = settings or Settings()
    configure_logging(settings)

    app = FastAPI(
        title="Retail Graph API",
        description="Retail transaction analytics over a graph store",
        version="0.1.0",
        debug=settings.debug,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )
    app.state.settings = settings

    register_middleware(app, cors_origins=settings.cors_origins)
    include_routers(app)

    return app
