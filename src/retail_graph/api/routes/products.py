"""Product endpoint.

GET /product/date?date= — distinct products sold on a given date.
"""

from __future__ import annotations

from fastapi import APIRouter, Query
from fastapi.responses import ORJSONResponse

from retail_graph.api.dependencies import GraphStoreDep  # noqa: TCH001 — runtime: Depends()

router = APIRouter(tags=["products"])


@router.get("/product/date")
async def products_of_the_day(
    graph_store: GraphStoreDep,
    date: str = Query(..., min_length=1),
) -> ORJSONResponse:
    """Distinct products of transactions stamped exactly ``date``."""
    return ORJSONResponse(content=await graph_store.products_of_the_day(date))
