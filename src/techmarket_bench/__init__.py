"""
TechMarket Database Benchmark

Comparative benchmark of an e-commerce workload across three data stores:
- PostgreSQL (relational, SQLAlchemy Core over psycopg)
- MongoDB (document, pymongo)
- Cassandra (wide-column, cassandra-driver)
"""

__version__ = "0.1.0"

# Don't import the runner here; it pulls in all three database drivers.
# Users can import directly: from techmarket_bench.harness import BenchmarkHarness

__all__ = ["__version__"]
