"""Buyer analytics endpoints.

GET /buyers                                 — every buyer
GET /buyer/{buyer_id}/purchase-history      — a buyer's transactions
GET /buyer/{buyer_id}/same-ip               — other buyers sharing an ip
GET /buyer/{buyer_id}/product-recomendations — products bought by others
GET /buyer/date?date=                       — buyers of a given date

Result trees are written through unchanged.
"""

from __future__ import annotations

from fastapi import APIRouter, Query
from fastapi.responses import ORJSONResponse

from retail_graph.api.dependencies import GraphStoreDep  # noqa: TCH001 — runtime: Depends()

router = APIRouter(tags=["buyers"])


@router.get("/buyers")
async def list_buyers(graph_store: GraphStoreDep) -> ORJSONResponse:
    """Enumerate every buyer as ``{uid, name, age}``."""
    return ORJSONResponse(content=await graph_store.all_buyers())


@router.get("/buyer/date")
async def buyers_of_the_day(
    graph_store: GraphStoreDep,
    date: str = Query(..., min_length=1),
) -> ORJSONResponse:
    """Distinct buyers of transactions stamped exactly ``date``."""
    return ORJSONResponse(content=await graph_store.buyers_of_the_day(date))


@router.get("/buyer/{buyer_id}/purchase-history")
async def purchase_history(buyer_id: str, graph_store: GraphStoreDep) -> ORJSONResponse:
    return ORJSONResponse(content=await graph_store.purchase_history(buyer_id))


@router.get("/buyer/{buyer_id}/same-ip")
async def same_ip_buyers(buyer_id: str, graph_store: GraphStoreDep) -> ORJSONResponse:
    return ORJSONResponse(content=await graph_store.same_ip_buyers(buyer_id))


@router.get("/buyer/{buyer_id}/product-recomendations")
async def product_recommendations(buyer_id: str, graph_store: GraphStoreDep) -> ORJSONResponse:
    """Transactions by others, restricted to products this buyer lacks."""
    return ORJSONResponse(content=await graph_store.product_recommendations(buyer_id))
