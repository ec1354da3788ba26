"""Order generator; client and product references stay within the given cardinalities."""

from datetime import datetime, timedelta
from typing import List, Optional

import numpy as np

from ..models import ORDER_STATUSES, Order, OrderItem
from .products import truncate_cents


def generate_order_items(
    order_id: int,
    product_count: int,
    max_items: int,
    rng: np.random.Generator
) -> List[OrderItem]:
    """Pick 1..max_items distinct products for one order."""
    item_count = min(int(rng.integers(1, max_items + 1)), product_count)
    product_ids = rng.choice(product_count, size=item_count, replace=False) + 1

    return [
        OrderItem(
            order_id=order_id,
            product_id=int(product_id),
            quantity=int(rng.integers(1, 6)),
            unit_price=round(100.0 + rng.random() * 900.0, 2),
        )
        for product_id in product_ids
    ]


def generate_orders(
    count: int,
    client_count: int,
    product_count: int,
    rng: np.random.Generator,
    now: Optional[datetime] = None,
    max_items: int = 10
) -> List[Order]:
    """
    Generate orders with ids 1..count, placed within the last 90 days.

    Args:
        count: Number of orders to generate
        client_count: Number of clients (client ids are 1..client_count)
        product_count: Number of products (product ids are 1..product_count)
        rng: Caller-owned random source
        now: Reference time (defaults to datetime.now())
        max_items: Upper bound of distinct products per order

    Returns:
        List of Order, each with its items and truncated total value
    """
    now = now or datetime.now()
    orders = []

    for order_id in range(1, count + 1):
        items = generate_order_items(order_id, product_count, max_items, rng)
        total = sum(item.unit_price * item.quantity for item in items)

        orders.append(Order(
            id=order_id,
            client_id=int(rng.integers(1, client_count + 1)),
            order_date=now - timedelta(days=int(rng.integers(0, 90))),
            status=ORDER_STATUSES[int(rng.integers(len(ORDER_STATUSES)))],
            total_value=truncate_cents(total),
            items=items,
        ))

    return orders
