"""Cypher templates for the retail transaction graph.

Schema statements, the read-only query catalog, and the ingestion
mutation. Every template binds its inputs as parameters; nothing is
interpolated into the statement text.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Schema: uniqueness constraints and entry-point indexes
# ---------------------------------------------------------------------------

# Labels: Buyer, Product, Transaction.
# Relationships: (Transaction)-[:CUSTOMER]->(Buyer), exactly one per
# transaction; (Transaction)-[:INCLUDES]->(Product), zero or more.

CONSTRAINT_BUYER_PK = "CREATE CONSTRAINT buyer_pk IF NOT EXISTS FOR (b:Buyer) REQUIRE b.uid IS UNIQUE"

CONSTRAINT_PRODUCT_PK = (
    "CREATE CONSTRAINT product_pk IF NOT EXISTS FOR (p:Product) REQUIRE p.uid IS UNIQUE"
)

CONSTRAINT_TRANSACTION_PK = (
    "CREATE CONSTRAINT transaction_pk IF NOT EXISTS FOR (t:Transaction) REQUIRE t.uid IS UNIQUE"
)

# age: existence predicate used to enumerate buyers
INDEX_BUYER_AGE = "CREATE INDEX buyer_age IF NOT EXISTS FOR (b:Buyer) ON (b.age)"

# date: equality lookup for the *OfTheDay templates
INDEX_TRANSACTION_DATE = (
    "CREATE INDEX transaction_date IF NOT EXISTS FOR (t:Transaction) ON (t.date)"
)

INDEX_TRANSACTION_IP = "CREATE INDEX transaction_ip IF NOT EXISTS FOR (t:Transaction) ON (t.ip)"

ALL_SCHEMA = [
    CONSTRAINT_BUYER_PK,
    CONSTRAINT_PRODUCT_PK,
    CONSTRAINT_TRANSACTION_PK,
    INDEX_BUYER_AGE,
    INDEX_TRANSACTION_DATE,
    INDEX_TRANSACTION_IP,
]

# ---------------------------------------------------------------------------
# Query catalog (read-only)
# ---------------------------------------------------------------------------

ALL_BUYERS = """
MATCH (b:Buyer)
WHERE b.age IS NOT NULL
RETURN b {.uid, .name, .age} AS buyer
ORDER BY b.name, b.uid
""".strip()

PURCHASE_HISTORY = """
MATCH (b:Buyer {uid: $buyer_id})
OPTIONAL MATCH (b)<-[:CUSTOMER]-(t:Transaction)
OPTIONAL MATCH (t)-[:INCLUDES]->(p:Product)
WITH b, t, collect(p {.uid, .name, .price}) AS products
ORDER BY t.date
WITH b, collect(
    CASE WHEN t IS NULL THEN NULL
    ELSE t {.uid, .ip, .device, .date, products: products} END
) AS purchases
RETURN b {.uid, .name, .age, purchases: purchases} AS history
""".strip()

# Two passes: the buyer's ip set is fully collected before the second
# traversal filters other buyers' transactions on it.
SAME_IP_BUYERS = """
MATCH (target:Buyer {uid: $buyer_id})<-[:CUSTOMER]-(own:Transaction)
WHERE own.ip IS NOT NULL
WITH target, collect(DISTINCT own.ip) AS ips
MATCH (other:Buyer)<-[:CUSTOMER]-(shared:Transaction)
WHERE shared.ip IN ips AND other.uid <> target.uid
WITH other, shared
ORDER BY shared.date
WITH other, collect(shared {.uid, .ip, .device, .date}) AS transactions
RETURN other {.uid, .name, .age, transactions: transactions} AS buyer
ORDER BY other.name, other.uid
""".strip()

OWNED_PRODUCT_UIDS = """
MATCH (:Buyer {uid: $buyer_id})<-[:CUSTOMER]-(:Transaction)-[:INCLUDES]->(p:Product)
RETURN collect(DISTINCT p.uid) AS owned
""".strip()

RECOMMENDATION_CANDIDATES = """
MATCH (t:Transaction)
WHERE t.ip IS NOT NULL
WITH t
ORDER BY t.date DESC
LIMIT $limit
OPTIONAL MATCH (t)-[:INCLUDES]->(p:Product)
WITH t, collect(p {.uid, .name, .price}) AS products
RETURN t {.uid, .ip, .device, .date, products: products} AS candidate
ORDER BY t.date DESC
""".strip()

# $date is an epoch-ms integer, parsed by the caller
BUYERS_OF_THE_DAY = """
MATCH (t:Transaction)-[:CUSTOMER]->(b:Buyer)
WHERE t.date = $date
WITH DISTINCT b
RETURN b {.name, .age} AS buyer
ORDER BY b.name
""".strip()

PRODUCTS_OF_THE_DAY = """
MATCH (t:Transaction)-[:INCLUDES]->(p:Product)
WHERE t.date = $date
WITH DISTINCT p
RETURN p {.name, .price} AS product
ORDER BY p.name
""".strip()

TRANSACTIONS_OF_THE_DAY = """
MATCH (t:Transaction)
WHERE t.date = $date
OPTIONAL MATCH (t)-[:CUSTOMER]->(b:Buyer)
OPTIONAL MATCH (t)-[:INCLUDES]->(p:Product)
WITH t, b, collect(p {.uid, .name, .price}) AS products
RETURN t {
    .uid,
    buyer: b {.uid, .name, .age},
    .ip,
    .device,
    products: products,
    .date
} AS transaction
ORDER BY t.uid
""".strip()

PING = "RETURN 1 AS ok"

# ---------------------------------------------------------------------------
# Ingestion mutation (run inside one explicit transaction)
# ---------------------------------------------------------------------------

MATCH_BUYER = """
MATCH (b:Buyer {uid: $uid})
RETURN b.uid AS uid
""".strip()

CREATE_BUYER = """
CREATE (b:Buyer {uid: randomUUID(), name: $name, age: $age})
RETURN b.uid AS uid
""".strip()

MATCH_PRODUCT = """
MATCH (p:Product {uid: $uid})
RETURN p.uid AS uid
""".strip()

CREATE_PRODUCT = """
CREATE (p:Product {uid: randomUUID(), name: $name, price: $price})
RETURN p.uid AS uid
""".strip()

CREATE_TRANSACTION = """
MATCH (b:Buyer {uid: $buyer_uid})
CREATE (t:Transaction {uid: randomUUID(), ip: $ip, device: $device, date: $date})
CREATE (t)-[:CUSTOMER]->(b)
RETURN t.uid AS uid
""".strip()

LINK_PRODUCTS = """
MATCH (t:Transaction {uid: $transaction_uid})
UNWIND $product_uids AS product_uid
MATCH (p:Product {uid: product_uid})
CREATE (t)-[:INCLUDES]->(p)
RETURN count(*) AS linked
""".strip()

# ---------------------------------------------------------------------------
# Cleanup (for testing)
# ---------------------------------------------------------------------------

DELETE_ALL = "MATCH (n) DETACH DELETE n"
