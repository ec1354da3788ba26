"""
Contract Test: Repository Protocol Conformance

REQUIREMENT: Every backend adapter MUST satisfy the Repository protocol with
identical method signatures, and MUST map "not found" to None, [] or 0.0
instead of raising.
"""

import inspect
from unittest import mock

import pytest
from sqlalchemy import create_engine

from techmarket_bench.config import CassandraConfig, MongoDBConfig, PostgresConfig
from techmarket_bench.models import one_month_before
from techmarket_bench.repositories import InsertRepository, QueryRepository, Repository
from techmarket_bench.repositories.cassandra import CassandraRepository
from techmarket_bench.repositories.mongodb import MongoDBRepository
from techmarket_bench.repositories.postgres import PostgresRepository

ADAPTERS = [PostgresRepository, MongoDBRepository, CassandraRepository]

CONTRACT_METHODS = [
    "batch_create_clients",
    "batch_create_products",
    "batch_create_orders",
    "batch_create_payments",
    "get_client_by_email",
    "get_products_by_category",
    "get_delivered_products_by_client",
    "get_top_selling_products",
    "get_last_month_pix_payments",
    "get_client_total_spent",
    "reset_schema",
    "close",
]


def empty_mongo_client():
    collection = mock.MagicMock()
    collection.find_one.return_value = None
    collection.find.return_value.sort.return_value = []
    collection.aggregate.return_value = []

    client = mock.MagicMock()
    client.__getitem__.return_value.__getitem__.return_value = collection
    return client


def empty_cassandra_session():
    session = mock.MagicMock()
    session.execute.return_value = []
    return session


def build_empty(adapter):
    """Connected adapter over an empty store"""
    if adapter is PostgresRepository:
        repo = PostgresRepository(PostgresConfig(), engine=create_engine("sqlite://"))
        repo.reset_schema()
        return repo
    if adapter is MongoDBRepository:
        return MongoDBRepository(MongoDBConfig(), client=empty_mongo_client())
    return CassandraRepository(CassandraConfig(), session=empty_cassandra_session())


class TestRepositorySignatures:
    """Contract tests for adapter method signatures"""

    @pytest.mark.parametrize("adapter", ADAPTERS)
    @pytest.mark.parametrize("method", CONTRACT_METHODS)
    def test_method_matches_protocol(self, adapter, method):
        """Parameter names and defaults MUST match the protocol"""
        expected = inspect.signature(getattr(Repository, method))
        actual = inspect.signature(getattr(adapter, method))

        assert list(actual.parameters) == list(expected.parameters)
        for name, param in expected.parameters.items():
            assert actual.parameters[name].default == param.default, \
                f"{adapter.__name__}.{method}({name}) default differs"

    @pytest.mark.parametrize("adapter", ADAPTERS)
    def test_adapters_do_not_inherit_protocol(self, adapter):
        """Conformance is structural only"""
        assert Repository not in adapter.__mro__


class TestRepositoryInstances:
    """Contract tests against connected adapters over empty stores"""

    @pytest.fixture(params=ADAPTERS, ids=lambda a: a.__name__)
    def repo(self, request):
        repository = build_empty(request.param)
        yield repository
        repository.close()

    def test_isinstance_of_protocols(self, repo):
        assert isinstance(repo, InsertRepository)
        assert isinstance(repo, QueryRepository)
        assert isinstance(repo, Repository)

    def test_not_found_maps_to_empty_results(self, repo, now):
        """Queries on an empty store MUST NOT raise"""
        assert repo.get_client_by_email("nobody@example.com") is None
        assert repo.get_products_by_category("Smartphones") == []
        assert repo.get_delivered_products_by_client(1) == []
        assert repo.get_top_selling_products() == []
        assert repo.get_last_month_pix_payments(now) == []
        assert repo.get_client_total_spent(1, one_month_before(now), now) == 0.0

    def test_empty_batches_are_accepted(self, repo):
        repo.batch_create_clients([])
        repo.batch_create_products([])
        repo.batch_create_orders([])
        repo.batch_create_payments([])
