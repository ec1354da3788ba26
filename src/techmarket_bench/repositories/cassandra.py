"""
Cassandra repository adapter.

Query-first table design, one table per access path:
- clients_by_email:           client lookup by e-mail
- products_by_category:       products of a category, clustered by price
- products_by_id:             product details for id lookups
- orders_by_client:           orders of a client, clustered by date, with
                              items embedded as text maps
- sales_by_product:           quantity-sold counters per product
- payments_by_type_and_month: payments bucketed by (type, month)

Writes go through prepared statements in unlogged batches (100 statements,
30 orders); sales counters are updated in a separate counter batch per
order chunk.
"""

import heapq
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

import structlog
from cassandra import ConsistencyLevel
from cassandra.cluster import EXEC_PROFILE_DEFAULT, Cluster, ExecutionProfile
from cassandra.policies import RetryPolicy, WriteType
from cassandra.query import BatchStatement, BatchType

from ..config import CassandraConfig
from ..exceptions import BackendConnectionError, RowDecodeError
from ..models import (
    ORDER_STATUS_DELIVERED,
    PAYMENT_TYPE_PIX,
    Client,
    Order,
    Payment,
    Product,
    month_key,
    one_month_before,
)
from .base import chunked

logger = structlog.get_logger()

BATCH_SIZE = 100
ORDER_BATCH_SIZE = 30

TABLES = {
    "clients_by_email": """
        CREATE TABLE IF NOT EXISTS clients_by_email (
            email text PRIMARY KEY,
            id int,
            name text,
            phone text,
            created_at timestamp,
            cpf text
        )""",
    "products_by_category": """
        CREATE TABLE IF NOT EXISTS products_by_category (
            category text,
            price double,
            product_id int,
            name text,
            stock int,
            PRIMARY KEY ((category), price, product_id)
        )""",
    "products_by_id": """
        CREATE TABLE IF NOT EXISTS products_by_id (
            product_id int PRIMARY KEY,
            name text,
            category text,
            price double,
            stock int
        )""",
    "orders_by_client": """
        CREATE TABLE IF NOT EXISTS orders_by_client (
            client_id int,
            order_date timestamp,
            order_id int,
            status text,
            total_value double,
            items list<frozen<map<text, text>>>,
            PRIMARY KEY ((client_id), order_date, order_id)
        ) WITH CLUSTERING ORDER BY (order_date DESC, order_id ASC)""",
    "sales_by_product": """
        CREATE TABLE IF NOT EXISTS sales_by_product (
            product_id int PRIMARY KEY,
            total_sold counter
        )""",
    "payments_by_type_and_month": """
        CREATE TABLE IF NOT EXISTS payments_by_type_and_month (
            type text,
            month text,
            payment_date timestamp,
            payment_id int,
            order_id int,
            status text,
            PRIMARY KEY ((type, month), payment_date, payment_id)
        ) WITH CLUSTERING ORDER BY (payment_date DESC, payment_id ASC)""",
}

INSERT_CLIENT = (
    "INSERT INTO clients_by_email (email, id, name, phone, created_at, cpf) "
    "VALUES (?, ?, ?, ?, ?, ?)"
)
INSERT_PRODUCT_BY_CATEGORY = (
    "INSERT INTO products_by_category (category, price, product_id, name, stock) "
    "VALUES (?, ?, ?, ?, ?)"
)
INSERT_PRODUCT_BY_ID = (
    "INSERT INTO products_by_id (product_id, name, category, price, stock) "
    "VALUES (?, ?, ?, ?, ?)"
)
INSERT_ORDER = (
    "INSERT INTO orders_by_client (client_id, order_date, order_id, status, total_value, items) "
    "VALUES (?, ?, ?, ?, ?, ?)"
)
INCREMENT_SALES = "UPDATE sales_by_product SET total_sold = total_sold + ? WHERE product_id = ?"
INSERT_PAYMENT = (
    "INSERT INTO payments_by_type_and_month (type, month, payment_date, payment_id, order_id, status) "
    "VALUES (?, ?, ?, ?, ?, ?)"
)

SELECT_CLIENT_BY_EMAIL = (
    "SELECT id, email, name, phone, created_at, cpf FROM clients_by_email WHERE email = ? LIMIT 1"
)
SELECT_PRODUCTS_BY_CATEGORY = (
    "SELECT product_id, name, category, price, stock FROM products_by_category WHERE category = ?"
)
SELECT_PRODUCTS_BY_IDS = (
    "SELECT product_id, name, category, price, stock FROM products_by_id WHERE product_id IN ?"
)
SELECT_ORDER_ITEMS_BY_STATUS = (
    "SELECT items FROM orders_by_client WHERE client_id = ? AND status = ? ALLOW FILTERING"
)
SELECT_SALES = "SELECT product_id, total_sold FROM sales_by_product"
SELECT_PAYMENTS_BY_MONTH = (
    "SELECT payment_id, order_id, type, status, payment_date FROM payments_by_type_and_month "
    "WHERE type = ? AND month = ? AND payment_date >= ? AND payment_date <= ?"
)
SELECT_TOTAL_SPENT = (
    "SELECT SUM(total_value) AS total FROM orders_by_client "
    "WHERE client_id = ? AND order_date >= ? AND order_date <= ?"
)


class BoundedRetryPolicy(RetryPolicy):
    """
    Retry failed requests up to max_retries times at the same consistency.

    Counter writes are never retried: a timed-out increment may already be
    applied on a replica, and replaying it would count the sale twice.
    """

    def __init__(self, max_retries: int):
        self.max_retries = max_retries

    def _decide(self, consistency, retry_num):
        if retry_num < self.max_retries:
            return self.RETRY, consistency
        return self.RETHROW, None

    def on_read_timeout(self, query, consistency, required_responses,
                        received_responses, data_retrieved, retry_num):
        return self._decide(consistency, retry_num)

    def on_write_timeout(self, query, consistency, write_type,
                         required_responses, received_responses, retry_num):
        if write_type == WriteType.COUNTER:
            return self.RETHROW, None
        return self._decide(consistency, retry_num)

    def on_unavailable(self, query, consistency, required_replicas, alive_replicas, retry_num):
        return self._decide(consistency, retry_num)

    def on_request_error(self, query, consistency, error, retry_num):
        if getattr(query, "batch_type", None) == BatchType.COUNTER:
            return self.RETHROW, None
        return self._decide(consistency, retry_num)


def encode_items(order: Order) -> List[Dict[str, str]]:
    """Items are stored as text maps inside the order row."""
    return [
        {
            "product_id": str(item.product_id),
            "quantity": str(item.quantity),
            "unit_price": repr(item.unit_price),
        }
        for item in order.items
    ]


def decode_item_product_ids(items: Optional[List[Dict[str, str]]]) -> List[int]:
    try:
        return [int(item["product_id"]) for item in items or []]
    except (KeyError, TypeError, ValueError) as e:
        raise RowDecodeError(f"malformed order item: {e!r}") from e


def _client_from_row(row) -> Client:
    return Client(
        id=row.id,
        name=row.name,
        email=row.email,
        phone=row.phone,
        created_at=row.created_at,
        cpf=row.cpf,
    )


def _product_from_row(row) -> Product:
    return Product(
        id=row.product_id,
        name=row.name,
        category=row.category,
        price=row.price,
        stock=row.stock,
    )


def _payment_from_row(row) -> Payment:
    return Payment(
        id=row.payment_id,
        order_id=row.order_id,
        type=row.type,
        status=row.status,
        payment_date=row.payment_date,
    )


class CassandraRepository:
    """Wide-column backend adapter."""

    def __init__(self, config: CassandraConfig, session: Optional[Any] = None):
        """
        Connect to the cluster and switch to the benchmark keyspace.

        The keyspace is created (SimpleStrategy, replication factor 1) when
        it does not exist yet.

        Args:
            config: Cluster connection parameters
            session: Pre-built session (skips cluster creation from config)

        Raises:
            BackendConnectionError: If the cluster cannot be reached
        """
        self.config = config
        self.cluster = None
        self._prepared: Dict[str, Any] = {}

        try:
            if session is None:
                profile = ExecutionProfile(
                    consistency_level=ConsistencyLevel.name_to_value[config.consistency],
                    request_timeout=config.timeout,
                    retry_policy=BoundedRetryPolicy(config.retries),
                )
                self.cluster = Cluster(
                    contact_points=config.hosts,
                    port=config.port,
                    connect_timeout=config.timeout,
                    executor_threads=config.executor_threads,
                    execution_profiles={EXEC_PROFILE_DEFAULT: profile},
                )
                session = self.cluster.connect()

            session.execute(
                f"CREATE KEYSPACE IF NOT EXISTS {config.keyspace} "
                "WITH replication = {'class': 'SimpleStrategy', 'replication_factor': 1}"
            )
            session.set_keyspace(config.keyspace)
        except Exception as e:
            raise BackendConnectionError("Cassandra", e) from e

        self.session = session

        logger.info("Cassandra repository connected",
                    hosts=config.hosts,
                    keyspace=config.keyspace,
                    consistency=config.consistency)

    def _prepare(self, cql: str):
        statement = self._prepared.get(cql)
        if statement is None:
            statement = self.session.prepare(cql)
            self._prepared[cql] = statement
        return statement

    def reset_schema(self) -> None:
        """Drop and recreate the benchmark tables."""
        self._prepared.clear()
        for name, ddl in TABLES.items():
            self.session.execute(f"DROP TABLE IF EXISTS {name}")
            self.session.execute(ddl)
        logger.info("Cassandra schema reset", keyspace=self.config.keyspace, tables=list(TABLES))

    def _execute_batches(
        self,
        statements: List[Tuple[str, tuple]],
        batch_size: int = BATCH_SIZE,
        batch_type=BatchType.UNLOGGED,
    ) -> None:
        for chunk in chunked(statements, batch_size):
            batch = BatchStatement(batch_type=batch_type)
            for cql, params in chunk:
                batch.add(self._prepare(cql), params)
            self.session.execute(batch)

    def batch_create_clients(self, clients: Sequence[Client]) -> None:
        self._execute_batches([
            (INSERT_CLIENT, (c.email, c.id, c.name, c.phone, c.created_at, c.cpf))
            for c in clients
        ])

    def batch_create_products(self, products: Sequence[Product]) -> None:
        """Write each product to both product tables in the same batch."""
        statements = []
        for p in products:
            statements.append(
                (INSERT_PRODUCT_BY_CATEGORY, (p.category, p.price, p.id, p.name, p.stock))
            )
            statements.append(
                (INSERT_PRODUCT_BY_ID, (p.id, p.name, p.category, p.price, p.stock))
            )
        self._execute_batches(statements)

    def batch_create_orders(self, orders: Sequence[Order]) -> None:
        for chunk in chunked(orders, ORDER_BATCH_SIZE):
            sold: Dict[int, int] = {}
            statements = []
            for o in chunk:
                statements.append((
                    INSERT_ORDER,
                    (o.client_id, o.order_date, o.id, o.status, o.total_value, encode_items(o)),
                ))
                for item in o.items:
                    sold[item.product_id] = sold.get(item.product_id, 0) + item.quantity

            self._execute_batches(statements, batch_size=ORDER_BATCH_SIZE)
            self._execute_batches(
                [(INCREMENT_SALES, (quantity, product_id)) for product_id, quantity in sold.items()],
                batch_size=BATCH_SIZE,
                batch_type=BatchType.COUNTER,
            )

    def batch_create_payments(self, payments: Sequence[Payment]) -> None:
        self._execute_batches([
            (
                INSERT_PAYMENT,
                (p.type, month_key(p.payment_date), p.payment_date, p.id, p.order_id, p.status),
            )
            for p in payments
        ])

    def get_client_by_email(self, email: str) -> Optional[Client]:
        rows = self.session.execute(self._prepare(SELECT_CLIENT_BY_EMAIL), (email,))
        row = next(iter(rows), None)
        return _client_from_row(row) if row is not None else None

    def get_products_by_category(self, category: str) -> List[Product]:
        rows = self.session.execute(self._prepare(SELECT_PRODUCTS_BY_CATEGORY), (category,))
        return [_product_from_row(row) for row in rows]

    def _get_products_by_ids(self, product_ids: List[int]) -> Dict[int, Product]:
        if not product_ids:
            return {}
        rows = self.session.execute(self._prepare(SELECT_PRODUCTS_BY_IDS), (product_ids,))
        products = (_product_from_row(row) for row in rows)
        return {p.id: p for p in products}

    def get_delivered_products_by_client(self, client_id: int) -> List[Product]:
        rows = self.session.execute(
            self._prepare(SELECT_ORDER_ITEMS_BY_STATUS), (client_id, ORDER_STATUS_DELIVERED)
        )
        product_ids = set()
        for row in rows:
            product_ids.update(decode_item_product_ids(row.items))

        products = self._get_products_by_ids(sorted(product_ids))
        return [products[pid] for pid in sorted(products)]

    def get_top_selling_products(self, limit: int = 5) -> List[Product]:
        """
        Rank products by their sales counters.

        Counters cannot be clustering keys, so the ranking is computed
        client-side over the counter table.
        """
        rows = self.session.execute(self._prepare(SELECT_SALES))
        top = heapq.nlargest(limit, rows, key=lambda r: (r.total_sold, -r.product_id))
        ranked_ids = [row.product_id for row in top]

        products = self._get_products_by_ids(ranked_ids)
        return [products[pid] for pid in ranked_ids if pid in products]

    def get_last_month_pix_payments(self, now: Optional[datetime] = None) -> List[Payment]:
        now = now or datetime.now()
        since = one_month_before(now)

        payments = []
        for month in sorted({month_key(since), month_key(now)}):
            rows = self.session.execute(
                self._prepare(SELECT_PAYMENTS_BY_MONTH), (PAYMENT_TYPE_PIX, month, since, now)
            )
            payments.extend(_payment_from_row(row) for row in rows)

        payments.sort(key=lambda p: (p.payment_date, p.id))
        return payments

    def get_client_total_spent(self, client_id: int, start: datetime, end: datetime) -> float:
        rows = self.session.execute(self._prepare(SELECT_TOTAL_SPENT), (client_id, start, end))
        row = next(iter(rows), None)
        if row is None or row.total is None:
            return 0.0
        return float(row.total)

    def close(self) -> None:
        """Shut down the session and the cluster it came from."""
        self.session.shutdown()
        if self.cluster is not None:
            self.cluster.shutdown()
