"""
Domain model for the TechMarket workload.

Entities are inert records shared by the generators and all three repository
adapters. Identifiers are assigned sequentially from 1 by the generators so
that foreign references resolve on every backend.
"""

import calendar
from dataclasses import dataclass, field
from datetime import datetime
from typing import List


# Order statuses (generator output and query filters share these constants)
ORDER_STATUS_PROCESSING = "Processing"
ORDER_STATUS_AWAITING_PAYMENT = "Awaiting Payment"
ORDER_STATUS_PAID = "Paid"
ORDER_STATUS_PICKING = "Picking"
ORDER_STATUS_IN_TRANSIT = "In Transit"
ORDER_STATUS_DELIVERED = "Delivered"
ORDER_STATUS_CANCELLED = "Cancelled"

ORDER_STATUSES = [
    ORDER_STATUS_PROCESSING,
    ORDER_STATUS_AWAITING_PAYMENT,
    ORDER_STATUS_PAID,
    ORDER_STATUS_PICKING,
    ORDER_STATUS_IN_TRANSIT,
    ORDER_STATUS_DELIVERED,
    ORDER_STATUS_CANCELLED,
]

PAYMENT_TYPE_PIX = "PIX"

PAYMENT_TYPES = [
    PAYMENT_TYPE_PIX,
    "Credit Card",
    "Debit Card",
    "Boleto",
    "Bank Transfer",
]

# Weights in percent, must sum to 100
PAYMENT_STATUS_WEIGHTS = {
    "Approved": 70,
    "Pending": 10,
    "Declined": 5,
    "Processing": 10,
    "Refunded": 5,
}

PRODUCT_CATEGORIES = [
    "Smartphones",
    "Notebooks",
    "Tablets",
    "Smart TVs",
    "Headphones",
    "Smartwatches",
    "Cameras",
    "Accessories",
    "Peripherals",
    "PC Components",
]


@dataclass
class Client:
    id: int
    name: str
    email: str
    phone: str
    created_at: datetime
    cpf: str


@dataclass
class Product:
    id: int
    name: str
    category: str
    price: float
    stock: int


@dataclass
class OrderItem:
    order_id: int
    product_id: int
    quantity: int
    unit_price: float


@dataclass
class Order:
    id: int
    client_id: int
    order_date: datetime
    status: str
    total_value: float
    items: List[OrderItem] = field(default_factory=list)


@dataclass
class Payment:
    id: int
    order_id: int
    type: str
    status: str
    payment_date: datetime


def one_month_before(moment: datetime) -> datetime:
    """
    Shift a timestamp back by one calendar month.

    The day is clamped to the length of the target month, so
    2024-03-31 becomes 2024-02-29.
    """
    year, month = moment.year, moment.month - 1
    if month == 0:
        year, month = year - 1, 12
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def month_key(moment: datetime) -> str:
    """Partition key used for month buckets, e.g. '2024-10'."""
    return moment.strftime("%Y-%m")
