"""Health check endpoint.

GET /health — reports reachability of the graph store.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter

from retail_graph.api.dependencies import GraphStoreDep  # noqa: TCH001 — runtime: Depends()

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(graph_store: GraphStoreDep) -> dict[str, Any]:
    """Service health check.

    Returns "healthy" when the graph store answers a trivial query and
    "unhealthy" otherwise. Always 200 so the caller can read the body.
    """
    neo4j_ok = await graph_store.ping()
    if not neo4j_ok:
        logger.warning("health_check_neo4j_failed")

    return {
        "status": "healthy" if neo4j_ok else "unhealthy",
        "neo4j": neo4j_ok,
        "version": "0.1.0",
    }
