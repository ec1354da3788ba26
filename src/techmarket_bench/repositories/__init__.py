"""
Repository adapters for the three benchmarked backends.

The adapters live in their own modules so importing the contract does not
pull in every database driver:

    from techmarket_bench.repositories.postgres import PostgresRepository
    from techmarket_bench.repositories.mongodb import MongoDBRepository
    from techmarket_bench.repositories.cassandra import CassandraRepository
"""

from .base import InsertRepository, QueryRepository, Repository, chunked

__all__ = ["InsertRepository", "QueryRepository", "Repository", "chunked"]
