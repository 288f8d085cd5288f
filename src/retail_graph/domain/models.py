"""Domain models for the retail transaction graph.

Node shapes (Buyer, Product, Transaction) and the ingestion state
machine. Pure Python + Pydantic v2, zero framework imports.

The JSON shape of every model mirrors the result trees returned by the
query catalog: ``uid`` is store-assigned and omitted when absent.

Inbound models use ``strict=True``: JSON strings, booleans and
non-finite numbers are never coerced into numeric fields.
"""

from __future__ import annotations

import enum
from typing import Annotated

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class IngestionState(enum.StrEnum):
    """Lifecycle of a single ingestion request.

    RECEIVED -> VALIDATED -> MUTATED -> COMMITTED, or ABORTED from any
    non-terminal state. There is no retry state.
    """

    RECEIVED = "received"
    VALIDATED = "validated"
    MUTATED = "mutated"
    COMMITTED = "committed"
    ABORTED = "aborted"


TERMINAL_STATES = frozenset({IngestionState.COMMITTED, IngestionState.ABORTED})


# ---------------------------------------------------------------------------
# Node models
# ---------------------------------------------------------------------------


class Buyer(BaseModel):
    """Buyer node. A ``uid`` references an existing buyer."""

    model_config = {"strict": True}

    uid: str | None = Field(default=None, min_length=1)
    name: str | None = None
    age: int | None = Field(default=None, ge=0)


class Product(BaseModel):
    """Product node. ``price`` is in the smallest currency unit."""

    model_config = {"strict": True}

    uid: str | None = Field(default=None, min_length=1)
    name: str | None = None
    price: (
        Annotated[int, Field(ge=0)]
        | Annotated[float, Field(ge=0, allow_inf_nan=False)]
        | None
    ) = None


class TransactionPayload(BaseModel):
    """Inbound purchase event.

    Unknown keys (including any caller-supplied ``date`` or ``uid``) are
    ignored; the date is always stamped by the server.
    """

    model_config = {"strict": True}

    buyer: Buyer
    ip: str = Field(..., min_length=1)
    device: str = Field(..., min_length=1)
    products: list[Product] = Field(default_factory=list)


class Transaction(BaseModel):
    """Transaction record as written to the graph and echoed to the caller."""

    uid: str | None = None
    buyer: Buyer
    ip: str
    device: str
    products: list[Product] = Field(default_factory=list)
    date: int = Field(..., ge=0, description="Epoch milliseconds, server-assigned")
