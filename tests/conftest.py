"""
Pytest configuration for TechMarket benchmark tests

No test needs a running database: the relational adapter runs on SQLite in
memory and the document and wide-column adapters run against mocked driver
objects.
"""

from datetime import datetime, timedelta

import numpy as np
import pytest

from techmarket_bench.models import ORDER_STATUS_DELIVERED


# Fixed reference time for every date-window assertion
NOW = datetime(2024, 10, 15, 12, 0, 0)


class FakeClock:
    """Deterministic replacement for time.perf_counter"""

    def __init__(self, *ticks: float):
        self.ticks = list(ticks)
        self.calls = 0

    def __call__(self) -> float:
        self.calls += 1
        return self.ticks.pop(0)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded random source, identical for every test"""
    return np.random.default_rng(42)


@pytest.fixture
def fake_clock():
    """Factory for clocks returning the given ticks in order"""
    return FakeClock


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests (no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "contract: Repository protocol conformance tests"
    )


def pytest_collection_modifyitems(config, items):
    """Mark tests by directory so `-m unit` / `-m contract` work"""
    for item in items:
        path = str(item.fspath)
        if "/unit/" in path:
            item.add_marker(pytest.mark.unit)
        elif "/contract/" in path:
            item.add_marker(pytest.mark.contract)


@pytest.fixture
def dataset(now):
    """
    Small hand-built dataset with known query answers.

    - Smartphones by price: [2, 1]
    - Delivered products: client 1 -> [1, 3, 4], client 2 -> [1, 4], client 3 -> []
    - Units sold: product 4 -> 8, product 1 -> 3, products 2 and 3 -> 1
    - Client 1 spent 3199.90 + 900.00 in the last month (order 2 is older)
    - Last-month PIX payments by date: [4, 1] (payment 2 is older)
    """
    from techmarket_bench.models import Client, Order, OrderItem, Payment, Product
    from techmarket_bench.runner import SeedData

    clients = [
        Client(1, "Ana Silva", "ana.silva1@example.com", "11987654321", now - timedelta(days=100), "529.982.247-25"),
        Client(2, "Bruno Costa", "bruno.costa2@mail.com", "21998765432", now - timedelta(days=50), "111.444.777-35"),
        Client(3, "Carla Lima", "carla.lima3@inbox.org", "31912345678", now - timedelta(days=10), "123.456.789-09"),
    ]
    products = [
        Product(1, "TechPro Smartphones Pro 1234", "Smartphones", 1500.00, 10),
        Product(2, "NextGen Smartphones Lite 2345", "Smartphones", 900.00, 20),
        Product(3, "MaxTech Headphones Plus 3456", "Headphones", 199.90, 30),
        Product(4, "ProTech Accessories Max 4567", "Accessories", 29.90, 40),
    ]
    orders = [
        Order(1, 1, now - timedelta(days=5), ORDER_STATUS_DELIVERED, 3199.90, [
            OrderItem(1, 1, 2, 1500.00),
            OrderItem(1, 3, 1, 199.90),
        ]),
        Order(2, 1, now - timedelta(days=40), ORDER_STATUS_DELIVERED, 149.50, [
            OrderItem(2, 4, 5, 29.90),
        ]),
        Order(3, 1, now - timedelta(days=10), "Cancelled", 900.00, [
            OrderItem(3, 2, 1, 900.00),
        ]),
        Order(4, 2, now - timedelta(days=3), ORDER_STATUS_DELIVERED, 1589.70, [
            OrderItem(4, 1, 1, 1500.00),
            OrderItem(4, 4, 3, 29.90),
        ]),
    ]
    payments = [
        Payment(1, 1, "PIX", "Approved", now - timedelta(days=2)),
        Payment(2, 2, "PIX", "Approved", now - timedelta(days=45)),
        Payment(3, 4, "Credit Card", "Pending", now - timedelta(days=1)),
        Payment(4, 3, "PIX", "Refunded", now - timedelta(days=20)),
    ]
    return SeedData(clients=clients, products=products, orders=orders, payments=payments)
