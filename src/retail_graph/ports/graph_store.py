"""Graph store port interface.

Uses typing.Protocol for structural subtyping (not ABCs).
The Neo4j adapter implements this protocol; unit tests use an
in-memory implementation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from retail_graph.domain.models import Transaction


class GraphStore(Protocol):
    """Protocol for the retail transaction graph store."""

    # -- Query catalog (read-only, best-effort consistency) ---------------

    async def all_buyers(self) -> list[dict[str, Any]]:
        """Every buyer node as ``{uid, name, age}``."""
        ...

    async def purchase_history(self, buyer_id: str) -> dict[str, Any]:
        """The buyer with its transactions; ``{}`` for an unknown buyer."""
        ...

    async def same_ip_buyers(self, buyer_id: str) -> list[dict[str, Any]]:
        """Other buyers that transacted from one of this buyer's ips."""
        ...

    async def product_recommendations(self, buyer_id: str) -> list[dict[str, Any]]:
        """Candidate transactions restricted to products the buyer does not own."""
        ...

    async def buyers_of_the_day(self, date: str) -> list[dict[str, Any]]:
        """Distinct buyers of transactions whose date equals ``date``."""
        ...

    async def products_of_the_day(self, date: str) -> list[dict[str, Any]]:
        """Distinct products of transactions whose date equals ``date``."""
        ...

    async def transactions_of_the_day(self, date: str) -> list[dict[str, Any]]:
        """Full transaction trees whose date equals ``date``."""
        ...

    # -- Ingestion ---------------------------------------------------------

    async def create_transaction(self, transaction: Transaction) -> str:
        """Atomically write a transaction with its CUSTOMER/INCLUDES edges.

        Returns the store-assigned transaction uid.
        """
        ...

    # -- Lifecycle ---------------------------------------------------------

    async def ping(self) -> bool:
        """Return True when the store answers a trivial query."""
        ...

    async def close(self) -> None:
        """Release connections."""
        ...
