"""Neo4j GraphStore adapter.

Implements the GraphStore protocol using the neo4j async driver. The
driver owns a bounded connection pool; every operation opens exactly one
session and releases it on all exit paths. Reads run in READ access mode
with a statement timeout. Ingestion runs in one explicit transaction
that commits fully or rolls back, with no driver-managed retries.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import structlog
from neo4j import READ_ACCESS, AsyncGraphDatabase, Query
from neo4j.exceptions import DriverError, Neo4jError, ServiceUnavailable, SessionExpired

from retail_graph.adapters.neo4j import queries
from retail_graph.domain.dates import parse_day
from retail_graph.domain.errors import StoreQueryError, StoreUnavailableError, UnknownReferenceError
from retail_graph.domain.recommendations import filter_recommendations
from retail_graph.settings import QuerySettings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from neo4j import AsyncDriver, AsyncSession, AsyncTransaction, Record

    from retail_graph.domain.models import Buyer, Product, Transaction
    from retail_graph.settings import Neo4jSettings

logger = structlog.get_logger(__name__)


class Neo4jGraphStore:
    """Neo4j implementation of the GraphStore protocol."""

    def __init__(
        self,
        settings: Neo4jSettings,
        query_settings: QuerySettings | None = None,
    ) -> None:
        self._settings = settings
        self._driver: AsyncDriver = AsyncGraphDatabase.driver(
            settings.uri,
            auth=(settings.username, settings.password),
            max_connection_pool_size=settings.max_connection_pool_size,
            connection_acquisition_timeout=settings.connection_acquisition_timeout_s,
        )
        self._database = settings.database
        self._timeout = settings.query_timeout_s
        query_settings = query_settings or QuerySettings()
        self._recommendation_limit = query_settings.recommendation_scan_limit

    # ------------------------------------------------------------------
    # Session and error plumbing
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _store_errors(self, operation: str) -> AsyncIterator[None]:
        """Translate driver failures into the domain store errors."""
        try:
            yield
        except (ServiceUnavailable, SessionExpired) as exc:
            logger.error("store_unavailable", operation=operation, error=str(exc))
            raise StoreUnavailableError(str(exc)) from exc
        except (Neo4jError, DriverError) as exc:
            logger.error("store_query_failed", operation=operation, error=str(exc))
            raise StoreQueryError(str(exc)) from exc

    def _read_session(self) -> AsyncSession:
        return self._driver.session(database=self._database, default_access_mode=READ_ACCESS)

    async def _run_read(
        self,
        session: AsyncSession,
        cypher: str,
        params: dict[str, Any] | None = None,
    ) -> list[Record]:
        result = await session.run(Query(cypher, timeout=self._timeout), params or {})
        return [record async for record in result]

    async def _read(
        self,
        operation: str,
        cypher: str,
        params: dict[str, Any] | None = None,
    ) -> list[Record]:
        async with self._store_errors(operation), self._read_session() as session:
            records = await self._run_read(session, cypher, params)
        logger.debug("store_read", operation=operation, records=len(records))
        return records

    # ------------------------------------------------------------------
    # Schema management
    # ------------------------------------------------------------------

    async def ensure_schema(self) -> None:
        """Create constraints and indexes if they do not exist."""
        async with self._store_errors("ensure_schema"), self._driver.session(
            database=self._database,
        ) as session:
            for statement in queries.ALL_SCHEMA:
                await session.run(statement)
        logger.info("ensured_schema", count=len(queries.ALL_SCHEMA))

    # ------------------------------------------------------------------
    # Query catalog
    # ------------------------------------------------------------------

    async def all_buyers(self) -> list[dict[str, Any]]:
        records = await self._read("all_buyers", queries.ALL_BUYERS)
        return [record["buyer"] for record in records]

    async def purchase_history(self, buyer_id: str) -> dict[str, Any]:
        records = await self._read(
            "purchase_history", queries.PURCHASE_HISTORY, {"buyer_id": buyer_id}
        )
        if not records:
            return {}
        return records[0]["history"]  # type: ignore[no-any-return]

    async def same_ip_buyers(self, buyer_id: str) -> list[dict[str, Any]]:
        records = await self._read("same_ip_buyers", queries.SAME_IP_BUYERS, {"buyer_id": buyer_id})
        return [record["buyer"] for record in records]

    async def product_recommendations(self, buyer_id: str) -> list[dict[str, Any]]:
        """Scan bounded candidates, then drop owned products and prune empties.

        Both traversals share one session so the request holds a single
        connection.
        """
        async with self._store_errors("product_recommendations"), self._read_session() as session:
            owned_records = await self._run_read(
                session, queries.OWNED_PRODUCT_UIDS, {"buyer_id": buyer_id}
            )
            candidate_records = await self._run_read(
                session,
                queries.RECOMMENDATION_CANDIDATES,
                {"limit": self._recommendation_limit},
            )

        owned: list[str] = owned_records[0]["owned"] if owned_records else []
        candidates = [record["candidate"] for record in candidate_records]
        recommendations = filter_recommendations(
            candidates, owned, limit=self._recommendation_limit
        )
        logger.debug(
            "recommendations_filtered",
            buyer_id=buyer_id,
            scanned=len(candidates),
            kept=len(recommendations),
        )
        return recommendations

    async def _read_day(self, operation: str, cypher: str, date: str) -> list[Record]:
        """Run a by-day template; a date that is not an epoch-ms integer matches nothing."""
        day = parse_day(date)
        if day is None:
            logger.debug("day_key_rejected", operation=operation, date=date)
            return []
        return await self._read(operation, cypher, {"date": day})

    async def buyers_of_the_day(self, date: str) -> list[dict[str, Any]]:
        records = await self._read_day("buyers_of_the_day", queries.BUYERS_OF_THE_DAY, date)
        return [record["buyer"] for record in records]

    async def products_of_the_day(self, date: str) -> list[dict[str, Any]]:
        records = await self._read_day("products_of_the_day", queries.PRODUCTS_OF_THE_DAY, date)
        return [record["product"] for record in records]

    async def transactions_of_the_day(self, date: str) -> list[dict[str, Any]]:
        records = await self._read_day(
            "transactions_of_the_day", queries.TRANSACTIONS_OF_THE_DAY, date
        )
        return [record["transaction"] for record in records]

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    async def _resolve_buyer(
        self,
        tx: AsyncTransaction,
        buyer: Buyer,
    ) -> str:
        """Link to an existing buyer by uid, or create a new one."""
        if buyer.uid is not None:
            result = await tx.run(queries.MATCH_BUYER, {"uid": buyer.uid})
            record = await result.single()
            if record is None:
                raise UnknownReferenceError("buyer.uid", buyer.uid)
            return record["uid"]  # type: ignore[no-any-return]

        result = await tx.run(queries.CREATE_BUYER, {"name": buyer.name, "age": buyer.age})
        record = await result.single()
        return record["uid"]  # type: ignore[index,no-any-return]

    async def _resolve_product(
        self,
        tx: AsyncTransaction,
        index: int,
        product: Product,
    ) -> str:
        """Link to an existing product by uid, or create a new one."""
        if product.uid is not None:
            result = await tx.run(queries.MATCH_PRODUCT, {"uid": product.uid})
            record = await result.single()
            if record is None:
                raise UnknownReferenceError(f"products.{index}.uid", product.uid)
            return record["uid"]  # type: ignore[no-any-return]

        result = await tx.run(
            queries.CREATE_PRODUCT, {"name": product.name, "price": product.price}
        )
        record = await result.single()
        return record["uid"]  # type: ignore[index,no-any-return]

    async def create_transaction(self, transaction: Transaction) -> str:
        """Write the transaction node and its edges in one explicit transaction.

        Any exception raised before commit (including an unknown buyer or
        product uid) rolls back every statement already run.
        """
        async with self._store_errors("create_transaction"), self._driver.session(
            database=self._database,
        ) as session:
            tx = await session.begin_transaction(timeout=self._timeout)
            async with tx:
                buyer_uid = await self._resolve_buyer(tx, transaction.buyer)
                product_uids = [
                    await self._resolve_product(tx, idx, product)
                    for idx, product in enumerate(transaction.products)
                ]

                result = await tx.run(
                    queries.CREATE_TRANSACTION,
                    {
                        "buyer_uid": buyer_uid,
                        "ip": transaction.ip,
                        "device": transaction.device,
                        "date": transaction.date,
                    },
                )
                record = await result.single()
                transaction_uid: str = record["uid"]  # type: ignore[index]

                if product_uids:
                    link_result = await tx.run(
                        queries.LINK_PRODUCTS,
                        {"transaction_uid": transaction_uid, "product_uids": product_uids},
                    )
                    await link_result.consume()

                await tx.commit()

        logger.info(
            "transaction_committed",
            transaction_uid=transaction_uid,
            buyer_uid=buyer_uid,
            products=len(product_uids),
            date=transaction.date,
        )
        return transaction_uid

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def ping(self) -> bool:
        """Return True when the store answers a trivial query."""
        try:
            await self._read("ping", queries.PING)
        except (StoreUnavailableError, StoreQueryError):
            return False
        return True

    async def close(self) -> None:
        """Release connections."""
        await self._driver.close()
        logger.info("neo4j_driver_closed")
