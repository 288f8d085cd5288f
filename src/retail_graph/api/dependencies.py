"""FastAPI dependency injection helpers.

Extracts shared resources from ``app.state`` so route handlers can
declare them via ``Depends()``.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request  # noqa: TCH002 — runtime: FastAPI dependency injection

from retail_graph.ports.graph_store import GraphStore  # noqa: TCH001 — runtime: Depends()


def get_graph_store(request: Request) -> GraphStore:
    """Return the graph store from app state."""
    return request.app.state.graph_store  # type: ignore[no-any-return]


GraphStoreDep = Annotated[GraphStore, Depends(get_graph_store)]
