"""
Repository contract shared by the three backend adapters.

The harness depends only on these protocols. Each adapter satisfies them
structurally; none inherits from them.

Contract rules:
- Batch inserts chunk internally; a failing chunk aborts the remaining
  chunks and the driver error propagates unchanged.
- Queries map "not found" to None, [] or 0.0 and never raise for it.
"""

from datetime import datetime
from typing import Iterator, List, Optional, Protocol, Sequence, TypeVar, runtime_checkable

from ..models import Client, Order, Payment, Product

T = TypeVar("T")


@runtime_checkable
class InsertRepository(Protocol):
    """Batch-insert side of the contract"""

    def batch_create_clients(self, clients: Sequence[Client]) -> None: ...

    def batch_create_products(self, products: Sequence[Product]) -> None: ...

    def batch_create_orders(self, orders: Sequence[Order]) -> None: ...

    def batch_create_payments(self, payments: Sequence[Payment]) -> None: ...


@runtime_checkable
class QueryRepository(Protocol):
    """Query side of the contract"""

    def get_client_by_email(self, email: str) -> Optional[Client]: ...

    def get_products_by_category(self, category: str) -> List[Product]: ...

    def get_delivered_products_by_client(self, client_id: int) -> List[Product]: ...

    def get_top_selling_products(self, limit: int = 5) -> List[Product]: ...

    def get_last_month_pix_payments(self, now: Optional[datetime] = None) -> List[Payment]: ...

    def get_client_total_spent(self, client_id: int, start: datetime, end: datetime) -> float: ...


@runtime_checkable
class Repository(InsertRepository, QueryRepository, Protocol):
    """Full adapter: inserts, queries and lifecycle"""

    def reset_schema(self) -> None: ...

    def close(self) -> None: ...


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """
    Yield consecutive slices of at most `size` items.

    Example:
        >>> [list(c) for c in chunked([1, 2, 3, 4, 5], 2)]
        [[1, 2], [3, 4], [5]]
    """
    if size <= 0:
        raise ValueError(f"chunk size must be > 0, got {size}")
    for start in range(0, len(items), size):
        yield items[start:start + size]
