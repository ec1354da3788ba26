"""Payment generator with weighted payment statuses."""

from datetime import datetime, timedelta
from typing import List, Optional

import numpy as np

from ..models import PAYMENT_STATUS_WEIGHTS, PAYMENT_TYPES, Payment


_STATUSES = list(PAYMENT_STATUS_WEIGHTS)
_PROBABILITIES = np.array([PAYMENT_STATUS_WEIGHTS[s] for s in _STATUSES], dtype=float) / 100.0


def generate_payment_status(rng: np.random.Generator) -> str:
    return _STATUSES[int(rng.choice(len(_STATUSES), p=_PROBABILITIES))]


def generate_payments(
    order_count: int,
    count: int,
    rng: np.random.Generator,
    now: Optional[datetime] = None
) -> List[Payment]:
    """
    Generate payments with ids 1..count, dated within the last 30 days.

    Args:
        order_count: Number of orders (order ids are 1..order_count)
        count: Number of payments to generate
        rng: Caller-owned random source
        now: Reference time (defaults to datetime.now())
    """
    now = now or datetime.now()

    return [
        Payment(
            id=payment_id,
            order_id=int(rng.integers(1, order_count + 1)),
            type=PAYMENT_TYPES[int(rng.integers(len(PAYMENT_TYPES)))],
            status=generate_payment_status(rng),
            payment_date=now - timedelta(days=int(rng.integers(0, 30))),
        )
        for payment_id in range(1, count + 1)
    ]
