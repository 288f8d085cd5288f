"""Transaction ingestion rules.

Pure Python + Pydantic, no web framework imports. Parses and validates an inbound
purchase event, stamps it with the server clock, and tracks the
per-request ingestion state machine.
"""

from __future__ import annotations

import time
from typing import Any
from uuid import uuid4

import structlog
from pydantic import ValidationError as PydanticValidationError

from retail_graph.domain.errors import ClientInputError
from retail_graph.domain.models import (
    TERMINAL_STATES,
    IngestionState,
    Transaction,
    TransactionPayload,
)

logger = structlog.get_logger(__name__)

# Allowed transitions of the ingestion state machine
_TRANSITIONS: dict[IngestionState, frozenset[IngestionState]] = {
    IngestionState.RECEIVED: frozenset({IngestionState.VALIDATED, IngestionState.ABORTED}),
    IngestionState.VALIDATED: frozenset({IngestionState.MUTATED, IngestionState.ABORTED}),
    IngestionState.MUTATED: frozenset({IngestionState.COMMITTED, IngestionState.ABORTED}),
    IngestionState.COMMITTED: frozenset(),
    IngestionState.ABORTED: frozenset(),
}


class ValidationResult:
    """Accumulates validation errors for a payload."""

    def __init__(self) -> None:
        self.errors: list[ClientInputError] = []

    def add_error(self, field: str, message: str) -> None:
        self.errors.append(ClientInputError(field, message))

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0


class IngestionTracker:
    """Tracks one ingestion request through its states.

    Every transition is logged; illegal transitions raise RuntimeError.
    """

    def __init__(self) -> None:
        self.state = IngestionState.RECEIVED
        self._log = logger.bind(ingestion_id=uuid4().hex[:12])
        self._log.debug("ingestion_state", state=str(self.state))

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def advance(self, target: IngestionState, **context: Any) -> None:
        if target not in _TRANSITIONS[self.state]:
            msg = f"Illegal ingestion transition {self.state} -> {target}"
            raise RuntimeError(msg)
        self.state = target
        self._log.debug("ingestion_state", state=str(target), **context)

    def abort(self, reason: str) -> None:
        """Move to ABORTED unless already terminal."""
        if not self.is_terminal:
            self.advance(IngestionState.ABORTED, reason=reason)


def current_epoch_ms() -> int:
    """Wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def parse_payload(raw: bytes | str) -> TransactionPayload:
    """Parse a raw JSON request body into a TransactionPayload.

    Validation runs in JSON mode against the strict models. Raises
    ClientInputError for the first failing field; errors on the body as a
    whole are reported against ``body``.
    """
    try:
        return TransactionPayload.model_validate_json(raw)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "body"
        if first["type"] == "json_invalid":
            message = "Malformed JSON body"
        elif not first["loc"]:
            message = "Request body must be a JSON object"
        else:
            message = first["msg"]
        raise ClientInputError(field, message) from exc


def validate_payload(payload: TransactionPayload) -> ValidationResult:
    """Validate references beyond what Pydantic's field validators enforce.

    - a buyer without uid must carry a name (it creates a new node)
    - a product without uid must carry a name (it creates a new node)
    """
    result = ValidationResult()

    if payload.buyer.uid is None and not payload.buyer.name:
        result.add_error("buyer.name", "A new buyer requires a name")

    for idx, product in enumerate(payload.products):
        if product.uid is None and not product.name:
            result.add_error(f"products.{idx}.name", "A new product requires a name")

    return result


def stamp_transaction(payload: TransactionPayload, now_ms: int | None = None) -> Transaction:
    """Build the Transaction record, assigning the server-side date."""
    return Transaction(
        buyer=payload.buyer,
        ip=payload.ip,
        device=payload.device,
        products=list(payload.products),
        date=current_epoch_ms() if now_ms is None else now_ms,
    )


def echo_transaction(transaction: Transaction) -> dict[str, Any]:
    """Render the confirmation body: the payload as sent plus its date."""
    return transaction.model_dump(mode="json", exclude_none=True)
