"""Transaction endpoints.

GET  /transaction/date?date= — transactions stamped exactly ``date``
POST /transaction            — ingest a purchase event

Ingestion walks RECEIVED -> VALIDATED -> MUTATED -> COMMITTED, or ends in
ABORTED. A malformed payload aborts before any write is attempted.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import ORJSONResponse

from retail_graph.api.dependencies import GraphStoreDep  # noqa: TCH001 — runtime: Depends()
from retail_graph.domain.errors import ClientInputError
from retail_graph.domain.ingestion import (
    IngestionTracker,
    echo_transaction,
    parse_payload,
    stamp_transaction,
    validate_payload,
)
from retail_graph.domain.models import IngestionState

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["transactions"])


@router.get("/transaction/date")
async def transactions_of_the_day(
    graph_store: GraphStoreDep,
    date: str = Query(..., min_length=1),
) -> ORJSONResponse:
    """Full transaction trees stamped exactly ``date``."""
    return ORJSONResponse(content=await graph_store.transactions_of_the_day(date))


@router.post("/transaction")
async def create_transaction(
    request: Request,
    graph_store: GraphStoreDep,
) -> ORJSONResponse:
    """Ingest a purchase event.

    The date is stamped by the server, the transaction and its edges are
    written atomically, and the payload is echoed back with its date.
    """
    tracker = IngestionTracker()

    try:
        payload = parse_payload(await request.body())
        validation_result = validate_payload(payload)
        if not validation_result.is_valid:
            raise validation_result.errors[0]
    except ClientInputError as exc:
        tracker.abort(f"invalid_payload:{exc.field}")
        raise

    tracker.advance(IngestionState.VALIDATED)
    transaction = stamp_transaction(payload)

    tracker.advance(IngestionState.MUTATED, date=transaction.date)
    try:
        transaction_uid = await graph_store.create_transaction(transaction)
    except Exception as exc:
        tracker.abort(type(exc).__name__)
        raise
    tracker.advance(IngestionState.COMMITTED, transaction_uid=transaction_uid)

    logger.info(
        "transaction_ingested",
        transaction_uid=transaction_uid,
        ip=transaction.ip,
        device=transaction.device,
        products=len(transaction.products),
    )

    return ORJSONResponse(content=echo_transaction(transaction))
