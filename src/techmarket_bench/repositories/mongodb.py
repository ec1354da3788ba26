"""
MongoDB repository adapter.

Document model:
- clients: one document per client, with its orders (and their items)
  embedded in an `orders` array
- products: one document per product
- payments: one document per payment

Documents use the generator ids as `_id`, so orders can be pushed into the
owning client document directly.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import structlog
from pymongo import ASCENDING, DESCENDING, MongoClient, UpdateOne

from ..config import MongoDBConfig
from ..exceptions import BackendConnectionError, RowDecodeError
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

BATCH_SIZE = 1000


def _client_from_doc(doc: Dict[str, Any]) -> Client:
    try:
        return Client(
            id=int(doc["_id"]),
            name=doc["name"],
            email=doc["email"],
            phone=doc["phone"],
            created_at=doc["created_at"],
            cpf=doc["cpf"],
        )
    except (KeyError, TypeError, ValueError) as e:
        raise RowDecodeError(f"malformed client document {doc.get('_id')!r}: {e!r}") from e


def _product_from_doc(doc: Dict[str, Any]) -> Product:
    try:
        return Product(
            id=int(doc["_id"]),
            name=doc["name"],
            category=doc["category"],
            price=float(doc["price"]),
            stock=int(doc["stock"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise RowDecodeError(f"malformed product document {doc.get('_id')!r}: {e!r}") from e


def _payment_from_doc(doc: Dict[str, Any]) -> Payment:
    try:
        return Payment(
            id=int(doc["_id"]),
            order_id=int(doc["order_id"]),
            type=doc["type"],
            status=doc["status"],
            payment_date=doc["payment_date"],
        )
    except (KeyError, TypeError, ValueError) as e:
        raise RowDecodeError(f"malformed payment document {doc.get('_id')!r}: {e!r}") from e


def order_to_document(order: Order) -> Dict[str, Any]:
    """Sub-document pushed into the client's `orders` array."""
    return {
        "order_id": order.id,
        "order_date": order.order_date,
        "status": order.status,
        "total_value": order.total_value,
        "items": [
            {
                "product_id": item.product_id,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
            }
            for item in order.items
        ],
    }


class MongoDBRepository:
    """Document backend adapter."""

    def __init__(self, config: MongoDBConfig, client: Optional[MongoClient] = None):
        """
        Connect to MongoDB and verify the connection with a ping.

        Args:
            config: Document-store connection parameters
            client: Pre-built client (skips client creation from config)

        Raises:
            BackendConnectionError: If the server cannot be reached
        """
        self.config = config
        self.batch_size = BATCH_SIZE

        try:
            if client is None:
                timeout_ms = config.timeout * 1000
                client = MongoClient(
                    config.uri,
                    maxPoolSize=config.pool_size,
                    connectTimeoutMS=timeout_ms,
                    serverSelectionTimeoutMS=timeout_ms,
                )
            client.admin.command("ping")
        except Exception as e:
            raise BackendConnectionError("MongoDB", e) from e

        self.client = client
        self.db = client[config.database]
        self.clients = self.db["clients"]
        self.products = self.db["products"]
        self.payments = self.db["payments"]

        logger.info("MongoDB repository connected",
                    database=config.database,
                    pool_size=config.pool_size)

    def reset_schema(self) -> None:
        """Drop the benchmark collections and recreate their indexes."""
        for collection in (self.clients, self.products, self.payments):
            collection.drop()

        self.clients.create_index([("email", ASCENDING)], unique=True)
        self.products.create_index([("category", ASCENDING), ("price", ASCENDING)])
        self.payments.create_index([("type", ASCENDING), ("payment_date", DESCENDING)])

        logger.info("MongoDB schema reset", database=self.config.database)

    def _insert_in_batches(self, collection, documents: List[Dict[str, Any]]) -> None:
        for batch in chunked(documents, self.batch_size):
            collection.insert_many(list(batch), ordered=True)
        logger.debug("MongoDB batch insert complete",
                     collection=collection.name, documents=len(documents))

    def batch_create_clients(self, clients: Sequence[Client]) -> None:
        documents = [
            {
                "_id": c.id,
                "name": c.name,
                "email": c.email,
                "phone": c.phone,
                "created_at": c.created_at,
                "cpf": c.cpf,
                "orders": [],
            }
            for c in clients
        ]
        self._insert_in_batches(self.clients, documents)

    def batch_create_products(self, products: Sequence[Product]) -> None:
        documents = [
            {
                "_id": p.id,
                "name": p.name,
                "category": p.category,
                "price": p.price,
                "stock": p.stock,
            }
            for p in products
        ]
        self._insert_in_batches(self.products, documents)

    def batch_create_orders(self, orders: Sequence[Order]) -> None:
        """Push each order, with its items, into the owning client document."""
        operations = [
            UpdateOne({"_id": o.client_id}, {"$push": {"orders": order_to_document(o)}})
            for o in orders
        ]
        for batch in chunked(operations, self.batch_size):
            self.clients.bulk_write(list(batch), ordered=True)
        logger.debug("MongoDB order push complete", orders=len(operations))

    def batch_create_payments(self, payments: Sequence[Payment]) -> None:
        documents = [
            {
                "_id": p.id,
                "order_id": p.order_id,
                "type": p.type,
                "status": p.status,
                "payment_date": p.payment_date,
            }
            for p in payments
        ]
        self._insert_in_batches(self.payments, documents)

    def get_client_by_email(self, email: str) -> Optional[Client]:
        doc = self.clients.find_one({"email": email}, projection={"orders": False})
        return _client_from_doc(doc) if doc is not None else None

    def get_products_by_category(self, category: str) -> List[Product]:
        cursor = self.products.find({"category": category}).sort(
            [("price", ASCENDING), ("_id", ASCENDING)]
        )
        return [_product_from_doc(doc) for doc in cursor]

    def get_delivered_products_by_client(self, client_id: int) -> List[Product]:
        pipeline = [
            {"$match": {"_id": client_id}},
            {"$unwind": "$orders"},
            {"$match": {"orders.status": ORDER_STATUS_DELIVERED}},
            {"$unwind": "$orders.items"},
            {"$group": {"_id": "$orders.items.product_id"}},
        ]
        product_ids = [doc["_id"] for doc in self.clients.aggregate(pipeline)]
        if not product_ids:
            return []

        cursor = self.products.find({"_id": {"$in": product_ids}}).sort("_id", ASCENDING)
        return [_product_from_doc(doc) for doc in cursor]

    def get_top_selling_products(self, limit: int = 5) -> List[Product]:
        pipeline = [
            {"$unwind": "$orders"},
            {"$unwind": "$orders.items"},
            {"$group": {
                "_id": "$orders.items.product_id",
                "total_sold": {"$sum": "$orders.items.quantity"},
            }},
            {"$sort": {"total_sold": -1, "_id": 1}},
            {"$limit": limit},
            {"$lookup": {
                "from": "products",
                "localField": "_id",
                "foreignField": "_id",
                "as": "product",
            }},
            {"$unwind": "$product"},
            {"$replaceRoot": {"newRoot": "$product"}},
        ]
        return [_product_from_doc(doc) for doc in self.clients.aggregate(pipeline)]

    def get_last_month_pix_payments(self, now: Optional[datetime] = None) -> List[Payment]:
        now = now or datetime.now()
        query = {
            "type": PAYMENT_TYPE_PIX,
            "payment_date": {"$gte": one_month_before(now), "$lte": now},
        }
        cursor = self.payments.find(query).sort(
            [("payment_date", ASCENDING), ("_id", ASCENDING)]
        )
        return [_payment_from_doc(doc) for doc in cursor]

    def get_client_total_spent(self, client_id: int, start: datetime, end: datetime) -> float:
        pipeline = [
            {"$match": {"_id": client_id}},
            {"$unwind": "$orders"},
            {"$match": {"orders.order_date": {"$gte": start, "$lte": end}}},
            {"$group": {"_id": None, "total": {"$sum": "$orders.total_value"}}},
        ]
        results = list(self.clients.aggregate(pipeline))
        if not results:
            return 0.0
        return float(results[0]["total"])

    def close(self) -> None:
        self.client.close()
