"""Unit test conftest with an in-memory graph store for API testing."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import uuid4

import pytest

from retail_graph.domain.dates import parse_day
from retail_graph.domain.errors import UnknownReferenceError
from retail_graph.domain.recommendations import filter_recommendations

if TYPE_CHECKING:
    from fastapi.testclient import TestClient

    from retail_graph.domain.models import Transaction


def _name_key(node: dict[str, Any]) -> tuple[bool, str, str]:
    # Cypher sorts nulls last
    return (node.get("name") is None, node.get("name") or "", node.get("uid") or "")


class InMemoryGraphStore:
    """In-memory GraphStore that follows the Cypher catalog's semantics.

    Set ``fail_with`` to make every operation raise that exception.
    """

    def __init__(self, recommendation_scan_limit: int = 5) -> None:
        self.buyers: dict[str, dict[str, Any]] = {}
        self.products: dict[str, dict[str, Any]] = {}
        self.transactions: dict[str, dict[str, Any]] = {}
        self.fail_with: Exception | None = None
        self.healthy = True
        self._scan_limit = recommendation_scan_limit

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    # -- Seeding helpers ---------------------------------------------------

    def add_buyer(self, name: str, age: int) -> str:
        uid = str(uuid4())
        self.buyers[uid] = {"uid": uid, "name": name, "age": age}
        return uid

    def add_product(self, name: str, price: float) -> str:
        uid = str(uuid4())
        self.products[uid] = {"uid": uid, "name": name, "price": price}
        return uid

    def add_transaction(
        self,
        buyer_uid: str,
        product_uids: list[str],
        ip: str | None = "1.1.1.1",
        device: str = "web",
        date: int = 1_000,
    ) -> str:
        uid = str(uuid4())
        self.transactions[uid] = {
            "uid": uid,
            "ip": ip,
            "device": device,
            "date": date,
            "buyer_uid": buyer_uid,
            "product_uids": list(product_uids),
        }
        return uid

    # -- Projections ---------------------------------------------------------

    def _products_of(self, txn: dict[str, Any]) -> list[dict[str, Any]]:
        return [dict(self.products[uid]) for uid in txn["product_uids"]]

    def _transactions_of(self, buyer_uid: str) -> list[dict[str, Any]]:
        owned = [t for t in self.transactions.values() if t["buyer_uid"] == buyer_uid]
        return sorted(owned, key=lambda t: t["date"])

    def _on_date(self, date: str) -> list[dict[str, Any]]:
        value = parse_day(date)
        if value is None:
            return []
        return [t for t in self.transactions.values() if t["date"] == value]

    # -- Query catalog -------------------------------------------------------

    async def all_buyers(self) -> list[dict[str, Any]]:
        self._check()
        buyers = [dict(b) for b in self.buyers.values() if b.get("age") is not None]
        return sorted(buyers, key=_name_key)

    async def purchase_history(self, buyer_id: str) -> dict[str, Any]:
        self._check()
        buyer = self.buyers.get(buyer_id)
        if buyer is None:
            return {}
        purchases = [
            {
                "uid": t["uid"],
                "ip": t["ip"],
                "device": t["device"],
                "date": t["date"],
                "products": self._products_of(t),
            }
            for t in self._transactions_of(buyer_id)
        ]
        return {**buyer, "purchases": purchases}

    async def same_ip_buyers(self, buyer_id: str) -> list[dict[str, Any]]:
        self._check()
        ips = {t["ip"] for t in self._transactions_of(buyer_id) if t["ip"] is not None}
        if not ips:
            return []
        result = []
        for other_uid, other in self.buyers.items():
            if other_uid == buyer_id:
                continue
            shared = [
                {"uid": t["uid"], "ip": t["ip"], "device": t["device"], "date": t["date"]}
                for t in self._transactions_of(other_uid)
                if t["ip"] in ips
            ]
            if shared:
                result.append({**other, "transactions": shared})
        return sorted(result, key=_name_key)

    async def product_recommendations(self, buyer_id: str) -> list[dict[str, Any]]:
        self._check()
        owned = {
            uid for t in self._transactions_of(buyer_id) for uid in t["product_uids"]
        }
        with_ip = [t for t in self.transactions.values() if t["ip"] is not None]
        with_ip.sort(key=lambda t: t["date"], reverse=True)
        candidates = [
            {
                "uid": t["uid"],
                "ip": t["ip"],
                "device": t["device"],
                "date": t["date"],
                "products": self._products_of(t),
            }
            for t in with_ip[: self._scan_limit]
        ]
        return filter_recommendations(candidates, owned, limit=self._scan_limit)

    async def buyers_of_the_day(self, date: str) -> list[dict[str, Any]]:
        self._check()
        seen: dict[str, dict[str, Any]] = {}
        for t in self._on_date(date):
            buyer = self.buyers[t["buyer_uid"]]
            seen[buyer["uid"]] = {"name": buyer["name"], "age": buyer["age"]}
        return sorted(seen.values(), key=_name_key)

    async def products_of_the_day(self, date: str) -> list[dict[str, Any]]:
        self._check()
        seen: dict[str, dict[str, Any]] = {}
        for t in self._on_date(date):
            for uid in t["product_uids"]:
                product = self.products[uid]
                seen[uid] = {"name": product["name"], "price": product["price"]}
        return sorted(seen.values(), key=_name_key)

    async def transactions_of_the_day(self, date: str) -> list[dict[str, Any]]:
        self._check()
        return [
            {
                "uid": t["uid"],
                "buyer": dict(self.buyers[t["buyer_uid"]]),
                "ip": t["ip"],
                "device": t["device"],
                "products": self._products_of(t),
                "date": t["date"],
            }
            for t in sorted(self._on_date(date), key=lambda t: t["uid"])
        ]

    # -- Ingestion -------------------------------------------------------------

    async def create_transaction(self, transaction: Transaction) -> str:
        """Stage every node first so a bad reference leaves no trace."""
        self._check()
        new_buyers: dict[str, dict[str, Any]] = {}
        new_products: dict[str, dict[str, Any]] = {}

        buyer = transaction.buyer
        if buyer.uid is not None:
            if buyer.uid not in self.buyers:
                raise UnknownReferenceError("buyer.uid", buyer.uid)
            buyer_uid = buyer.uid
        else:
            buyer_uid = str(uuid4())
            new_buyers[buyer_uid] = {"uid": buyer_uid, "name": buyer.name, "age": buyer.age}

        product_uids: list[str] = []
        for idx, product in enumerate(transaction.products):
            if product.uid is not None:
                if product.uid not in self.products:
                    raise UnknownReferenceError(f"products.{idx}.uid", product.uid)
                product_uids.append(product.uid)
            else:
                uid = str(uuid4())
                new_products[uid] = {"uid": uid, "name": product.name, "price": product.price}
                product_uids.append(uid)

        # Commit
        self.buyers.update(new_buyers)
        self.products.update(new_products)
        return self.add_transaction(
            buyer_uid,
            product_uids,
            ip=transaction.ip,
            device=transaction.device,
            date=transaction.date,
        )

    # -- Lifecycle -------------------------------------------------------------

    async def ping(self) -> bool:
        return self.healthy

    async def close(self) -> None:
        pass


def _build_app(store: InMemoryGraphStore):
    from fastapi import FastAPI
    from fastapi.responses import ORJSONResponse

    from retail_graph.api.app import include_routers
    from retail_graph.api.middleware import register_middleware
    from retail_graph.settings import Settings

    app = FastAPI(default_response_class=ORJSONResponse)
    register_middleware(app)
    include_routers(app)

    # Wire stubs into app state
    app.state.settings = Settings()
    app.state.graph_store = store
    return app


@pytest.fixture()
def graph_store() -> InMemoryGraphStore:
    """Return a fresh in-memory graph store."""
    return InMemoryGraphStore()


@pytest.fixture()
def test_client(graph_store: InMemoryGraphStore) -> TestClient:
    """FastAPI TestClient with an in-memory store (no Neo4j needed)."""
    from fastapi.testclient import TestClient as _TestClient

    return _TestClient(_build_app(graph_store))


@pytest.fixture()
def lenient_client(graph_store: InMemoryGraphStore) -> TestClient:
    """TestClient that returns 500 responses instead of re-raising."""
    from fastapi.testclient import TestClient as _TestClient

    return _TestClient(_build_app(graph_store), raise_server_exceptions=False)
