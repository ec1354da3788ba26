"""
PostgreSQL repository adapter.

Uses SQLAlchemy Core over the psycopg 3 driver. Batch inserts run as
executemany() chunks of 100 rows inside a single transaction, so a failing
chunk rolls back the whole call.
"""

from datetime import datetime
from typing import List, Optional, Sequence

import structlog
from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
    func,
    select,
    text,
)
from sqlalchemy.engine import Engine

from ..config import PostgresConfig
from ..exceptions import BackendConnectionError
from ..models import (
    ORDER_STATUS_DELIVERED,
    PAYMENT_TYPE_PIX,
    Client,
    Order,
    Payment,
    Product,
    one_month_before,
)
from .base import chunked

logger = structlog.get_logger()

BATCH_SIZE = 100

metadata = MetaData()

clients_table = Table(
    "clients", metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("name", String(120), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("phone", String(20)),
    Column("created_at", DateTime),
    Column("cpf", String(14)),
)

products_table = Table(
    "products", metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("name", String(160), nullable=False),
    Column("category", String(60), nullable=False, index=True),
    Column("price", Float, nullable=False),
    Column("stock", Integer, nullable=False),
)

orders_table = Table(
    "orders", metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("client_id", Integer, ForeignKey("clients.id"), nullable=False),
    Column("order_date", DateTime, nullable=False),
    Column("status", String(32), nullable=False),
    Column("total_value", Float, nullable=False),
    Index("ix_orders_client_status", "client_id", "status"),
)

order_items_table = Table(
    "order_items", metadata,
    Column("order_id", Integer, ForeignKey("orders.id"), primary_key=True),
    Column("product_id", Integer, ForeignKey("products.id"), primary_key=True),
    Column("quantity", Integer, nullable=False),
    Column("unit_price", Float, nullable=False),
)

payments_table = Table(
    "payments", metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("order_id", Integer, ForeignKey("orders.id"), nullable=False),
    Column("type", String(32), nullable=False),
    Column("status", String(32), nullable=False),
    Column("payment_date", DateTime, nullable=False),
    Index("ix_payments_type_date", "type", "payment_date"),
)


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
        id=row.id,
        name=row.name,
        category=row.category,
        price=row.price,
        stock=row.stock,
    )


def _payment_from_row(row) -> Payment:
    return Payment(
        id=row.id,
        order_id=row.order_id,
        type=row.type,
        status=row.status,
        payment_date=row.payment_date,
    )


class PostgresRepository:
    """Relational backend adapter."""

    def __init__(self, config: PostgresConfig, engine: Optional[Engine] = None):
        """
        Connect to PostgreSQL and verify the connection.

        Args:
            config: Relational connection parameters
            engine: Pre-built engine (skips engine creation from config)

        Raises:
            BackendConnectionError: If the database cannot be reached
        """
        self.config = config
        self.batch_size = BATCH_SIZE

        try:
            if engine is None:
                engine = create_engine(
                    config.uri,
                    pool_size=config.pool_size,
                    pool_pre_ping=True,
                    connect_args={"connect_timeout": config.connect_timeout},
                )
            self.engine = engine
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as e:
            raise BackendConnectionError("PostgreSQL", e) from e

        logger.info("PostgreSQL repository connected",
                    url=self.engine.url.render_as_string(hide_password=True),
                    pool_size=config.pool_size)

    def reset_schema(self) -> None:
        """Drop and recreate the benchmark tables."""
        metadata.drop_all(self.engine)
        metadata.create_all(self.engine)
        logger.info("PostgreSQL schema reset", tables=sorted(metadata.tables))

    def _insert_in_batches(self, conn, table: Table, rows: List[dict]) -> None:
        for batch in chunked(rows, self.batch_size):
            conn.execute(table.insert(), list(batch))
        logger.debug("PostgreSQL batch insert complete", table=table.name, rows=len(rows))

    def batch_create_clients(self, clients: Sequence[Client]) -> None:
        rows = [
            {
                "id": c.id,
                "name": c.name,
                "email": c.email,
                "phone": c.phone,
                "created_at": c.created_at,
                "cpf": c.cpf,
            }
            for c in clients
        ]
        with self.engine.begin() as conn:
            self._insert_in_batches(conn, clients_table, rows)

    def batch_create_products(self, products: Sequence[Product]) -> None:
        rows = [
            {
                "id": p.id,
                "name": p.name,
                "category": p.category,
                "price": p.price,
                "stock": p.stock,
            }
            for p in products
        ]
        with self.engine.begin() as conn:
            self._insert_in_batches(conn, products_table, rows)

    def batch_create_orders(self, orders: Sequence[Order]) -> None:
        """Insert orders and their items in one transaction."""
        order_rows = [
            {
                "id": o.id,
                "client_id": o.client_id,
                "order_date": o.order_date,
                "status": o.status,
                "total_value": o.total_value,
            }
            for o in orders
        ]
        item_rows = [
            {
                "order_id": item.order_id,
                "product_id": item.product_id,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
            }
            for o in orders
            for item in o.items
        ]
        with self.engine.begin() as conn:
            self._insert_in_batches(conn, orders_table, order_rows)
            self._insert_in_batches(conn, order_items_table, item_rows)

    def batch_create_payments(self, payments: Sequence[Payment]) -> None:
        rows = [
            {
                "id": p.id,
                "order_id": p.order_id,
                "type": p.type,
                "status": p.status,
                "payment_date": p.payment_date,
            }
            for p in payments
        ]
        with self.engine.begin() as conn:
            self._insert_in_batches(conn, payments_table, rows)

    def get_client_by_email(self, email: str) -> Optional[Client]:
        stmt = select(clients_table).where(clients_table.c.email == email).limit(1)
        with self.engine.connect() as conn:
            row = conn.execute(stmt).first()
        return _client_from_row(row) if row is not None else None

    def get_products_by_category(self, category: str) -> List[Product]:
        stmt = (
            select(products_table)
            .where(products_table.c.category == category)
            .order_by(products_table.c.price, products_table.c.id)
        )
        with self.engine.connect() as conn:
            return [_product_from_row(row) for row in conn.execute(stmt)]

    def get_delivered_products_by_client(self, client_id: int) -> List[Product]:
        joined = products_table.join(
            order_items_table, products_table.c.id == order_items_table.c.product_id
        ).join(
            orders_table, order_items_table.c.order_id == orders_table.c.id
        )
        stmt = (
            select(products_table)
            .distinct()
            .select_from(joined)
            .where(
                orders_table.c.client_id == client_id,
                orders_table.c.status == ORDER_STATUS_DELIVERED,
            )
            .order_by(products_table.c.id)
        )
        with self.engine.connect() as conn:
            return [_product_from_row(row) for row in conn.execute(stmt)]

    def get_top_selling_products(self, limit: int = 5) -> List[Product]:
        total_sold = func.sum(order_items_table.c.quantity).label("total_sold")
        joined = products_table.join(
            order_items_table, products_table.c.id == order_items_table.c.product_id
        )
        stmt = (
            select(products_table, total_sold)
            .select_from(joined)
            .group_by(*products_table.c)
            .order_by(total_sold.desc(), products_table.c.id)
            .limit(limit)
        )
        with self.engine.connect() as conn:
            return [_product_from_row(row) for row in conn.execute(stmt)]

    def get_last_month_pix_payments(self, now: Optional[datetime] = None) -> List[Payment]:
        now = now or datetime.now()
        stmt = (
            select(payments_table)
            .where(
                payments_table.c.type == PAYMENT_TYPE_PIX,
                payments_table.c.payment_date >= one_month_before(now),
                payments_table.c.payment_date <= now,
            )
            .order_by(payments_table.c.payment_date, payments_table.c.id)
        )
        with self.engine.connect() as conn:
            return [_payment_from_row(row) for row in conn.execute(stmt)]

    def get_client_total_spent(self, client_id: int, start: datetime, end: datetime) -> float:
        stmt = select(func.coalesce(func.sum(orders_table.c.total_value), 0.0)).where(
            orders_table.c.client_id == client_id,
            orders_table.c.order_date.between(start, end),
        )
        with self.engine.connect() as conn:
            total = conn.execute(stmt).scalar()
        return float(total or 0.0)

    def close(self) -> None:
        """Dispose of the connection pool."""
        self.engine.dispose()
