"""
Benchmark runner.

Seeds the synthetic dataset once, then drives the fixed benchmark matrix
through the harness:
- 4 insert operations (Client, Product, Order, Payment) per backend
- 6 query operations, each issued against every backend in turn

Backends are always visited in the order PostgreSQL, MongoDB, Cassandra.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Mapping, Optional, Tuple

import numpy as np
import structlog
from dotenv import load_dotenv

from .config import BenchmarkConfiguration, load_config
from .exceptions import BackendConnectionError
from .harness import BackendKind, BenchmarkHarness, Measurement, OperationKind
from .models import Client, Order, Payment, Product, one_month_before
from .output.json_exporter import export_json
from .repositories.base import Repository
from .repositories.cassandra import CassandraRepository
from .repositories.mongodb import MongoDBRepository
from .repositories.postgres import PostgresRepository
from .seed import generate_clients, generate_orders, generate_payments, generate_products

logger = structlog.get_logger()

BACKEND_ORDER = [BackendKind.POSTGRES, BackendKind.MONGODB, BackendKind.CASSANDRA]

TOP_SELLING_LIMIT = 5
QUERY_CLIENT_ID = 1


@dataclass
class SeedData:
    """Dataset shared by every backend in one run"""
    clients: List[Client]
    products: List[Product]
    orders: List[Order]
    payments: List[Payment]


def generate_seed_data(
    config: BenchmarkConfiguration,
    rng: np.random.Generator,
    now: Optional[datetime] = None,
) -> SeedData:
    """Generate the full dataset from the configured entity counts."""
    now = now or datetime.now()
    return SeedData(
        clients=generate_clients(config.client_count, rng, now=now),
        products=generate_products(config.product_count, rng),
        orders=generate_orders(config.order_count, config.client_count,
                               config.product_count, rng, now=now),
        payments=generate_payments(config.order_count, config.payment_count, rng, now=now),
    )


class BenchmarkRunner:
    """
    Runs the insert-then-query matrix against a set of repositories.

    Every operation goes through BenchmarkHarness.measure, so a failing
    backend call is logged and skipped while the rest of the matrix runs.
    """

    def __init__(
        self,
        config: BenchmarkConfiguration,
        harness: BenchmarkHarness,
        repositories: Dict[BackendKind, Repository],
    ):
        self.config = config
        self.harness = harness
        self.repositories = repositories

    def _backends(self) -> List[Tuple[BackendKind, Repository]]:
        return [(kind, self.repositories[kind]) for kind in BACKEND_ORDER if kind in self.repositories]

    def run_inserts(self, data: SeedData) -> None:
        for backend, repo in self._backends():
            logger.info("Insert phase started", backend=backend.value)
            operations = [
                ("Client", len(data.clients), lambda r=repo: r.batch_create_clients(data.clients)),
                ("Product", len(data.products), lambda r=repo: r.batch_create_products(data.products)),
                ("Order", len(data.orders), lambda r=repo: r.batch_create_orders(data.orders)),
                ("Payment", len(data.payments), lambda r=repo: r.batch_create_payments(data.payments)),
            ]
            for entity, count, fn in operations:
                self.harness.measure(backend, OperationKind.INSERT, entity, count, fn)

    def _queries(self, data: SeedData, now: datetime) -> List[Tuple[str, int, Callable[[Repository], object]]]:
        email = data.clients[0].email
        category = data.products[0].category
        since = one_month_before(now)

        return [
            ("Client by email", self.config.client_count,
             lambda r: r.get_client_by_email(email)),
            ("Products by category", self.config.product_count,
             lambda r: r.get_products_by_category(category)),
            ("Delivered products by client", self.config.client_count,
             lambda r: r.get_delivered_products_by_client(QUERY_CLIENT_ID)),
            ("Top 5 best-selling products", self.config.product_count,
             lambda r: r.get_top_selling_products(TOP_SELLING_LIMIT)),
            ("Last month PIX payments", self.config.payment_count,
             lambda r: r.get_last_month_pix_payments(now)),
            ("Client total spent in last month", self.config.client_count,
             lambda r: r.get_client_total_spent(QUERY_CLIENT_ID, since, now)),
        ]

    def run_queries(self, data: SeedData, now: Optional[datetime] = None) -> None:
        now = now or datetime.now()
        logger.info("Query phase started", backends=[kind.value for kind, _ in self._backends()])

        for label, count, query in self._queries(data, now):
            for backend, repo in self._backends():
                self.harness.measure(backend, OperationKind.QUERY, label, count,
                                     lambda q=query, r=repo: q(r))

    def run(self, data: SeedData, now: Optional[datetime] = None) -> Tuple[Measurement, ...]:
        """
        Execute the full benchmark matrix.

        Args:
            data: Dataset to insert and query
            now: Reference time for the date-window queries

        Returns:
            Measurements recorded by the harness so far
        """
        self.run_inserts(data)
        self.run_queries(data, now)
        return self.harness.results


def build_repositories(config: BenchmarkConfiguration) -> Dict[BackendKind, Repository]:
    """
    Connect every backend adapter.

    Adapters that already connected are closed again when a later one fails.

    Raises:
        BackendConnectionError: If any backend cannot be reached
    """
    factories = [
        (BackendKind.POSTGRES, lambda: PostgresRepository(config.postgres)),
        (BackendKind.MONGODB, lambda: MongoDBRepository(config.mongodb)),
        (BackendKind.CASSANDRA, lambda: CassandraRepository(config.cassandra)),
    ]

    repositories: Dict[BackendKind, Repository] = {}
    try:
        for kind, factory in factories:
            repositories[kind] = factory()
    except BackendConnectionError:
        close_repositories(repositories)
        raise
    return repositories


def close_repositories(repositories: Dict[BackendKind, Repository]) -> None:
    for kind, repo in repositories.items():
        try:
            repo.close()
        except Exception as e:
            logger.warning("Repository close failed", backend=kind.value, error=str(e))


def main(environ: Optional[Mapping[str, str]] = None) -> int:
    """
    Run the benchmark end to end.

    Returns:
        Process exit code (1 when a backend is unreachable)

    Raises:
        ValueError: If the configuration is invalid
    """
    load_dotenv()
    config = load_config(environ)

    errors = config.validate()
    if errors:
        raise ValueError("Invalid configuration:\n" + "\n".join(errors))

    try:
        repositories = build_repositories(config)
    except BackendConnectionError as e:
        logger.error("Backend connection failed", backend=e.backend, error=str(e.cause))
        return 1

    try:
        for repo in repositories.values():
            repo.reset_schema()

        now = datetime.now()
        rng = np.random.default_rng(config.random_seed)
        data = generate_seed_data(config, rng, now)
        logger.info("Seed data generated",
                    clients=len(data.clients),
                    products=len(data.products),
                    orders=len(data.orders),
                    payments=len(data.payments),
                    seed=config.random_seed)

        with BenchmarkHarness.open(config.report_path) as harness:
            BenchmarkRunner(config, harness, repositories).run(data, now)

        logger.info("Benchmark report written",
                    path=config.report_path,
                    measurements=len(harness.results))

        if config.json_report_path:
            path = export_json(harness.results, config.json_report_path)
            logger.info("Benchmark JSON exported", path=path)
    finally:
        close_repositories(repositories)

    return 0
