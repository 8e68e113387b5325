"""
Idempotent schema creation and seed-if-empty for every store
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from cassandra import AlreadyExists
from pymongo.errors import OperationFailure
from sqlalchemy import func, select

from tourbook.models import Destination
from tourbook.utils.cassandra import CassandraStore, TABLES as CASSANDRA_TABLES
from tourbook.utils.database import PostgresStore
from tourbook.utils.datastore import DatastoreUnavailableError, ignore_already_exists, is_already_exists
from tourbook.utils.mongodb import MongoStore
from tourbook.utils.oracle import OracleStore, TABLES as ORACLE_TABLES
from tourbook.utils.seed_data import SAMPLE_DESTINATIONS, SAMPLE_EMPLOYEES, SAMPLE_INVENTORY


async def _count_destinations(store: PostgresStore) -> int:
    async with store.session_factory() as session:
        return await session.scalar(select(func.count()).select_from(Destination))


async def test_postgres_seeds_sample_destinations_exactly_once(settings):
    first = PostgresStore(settings)
    await first.connect()
    await first.ensure_schema()
    assert await first.seed_if_empty() == len(SAMPLE_DESTINATIONS)
    await first.close()

    # Second bootstrap against the same database
    second = PostgresStore(settings)
    await second.connect()
    await second.ensure_schema()
    await second.ensure_schema()
    assert await second.seed_if_empty() == 0
    assert await _count_destinations(second) == len(SAMPLE_DESTINATIONS)
    await second.close()


async def test_postgres_requires_connection(settings):
    store = PostgresStore(settings)
    with pytest.raises(DatastoreUnavailableError):
        await store.ensure_schema()


@pytest.mark.parametrize("error", [
    AlreadyExists(keyspace="chimbote_travel", table="user_sessions"),
    OperationFailure("Index with name: date_1 already exists with different options", code=85),
    Exception("ORA-00955: name is already used by an existing object"),
    Exception('relation "destinations" already exists'),
])
def test_already_exists_errors_are_recognised(error):
    assert is_already_exists(error)
    with ignore_already_exists("schema object"):
        raise error


def test_other_errors_propagate():
    error = Exception("ORA-01017: invalid username/password; logon denied")
    assert not is_already_exists(error)
    with pytest.raises(Exception, match="ORA-01017"):
        with ignore_already_exists("schema object"):
            raise error


async def test_oracle_ensure_schema_skips_existing_tables(settings):
    store = OracleStore(settings)
    store.pool = MagicMock()
    store._execute = AsyncMock(side_effect=Exception("ORA-00955: name is already used by an existing object"))

    await store.ensure_schema()

    assert store._execute.await_count == len(ORACLE_TABLES)


async def test_oracle_seeds_only_empty_tables(settings):
    store = OracleStore(settings)
    store.pool = MagicMock()
    # employees empty, financial_records populated, inventory empty
    store._count = AsyncMock(side_effect=[0, 7, 0])
    store._execute_many = AsyncMock()

    inserted = await store.seed_if_empty()

    assert inserted == len(SAMPLE_EMPLOYEES) + len(SAMPLE_INVENTORY)
    seeded_rows = [call.args[1] for call in store._execute_many.await_args_list]
    assert seeded_rows == [SAMPLE_EMPLOYEES, SAMPLE_INVENTORY]


async def test_oracle_requires_credentials(settings):
    store = OracleStore(settings.model_copy(update={"ORACLE_USER": "", "ORACLE_PASSWORD": ""}))
    with pytest.raises(ValueError):
        await store.connect()


async def test_cassandra_ensure_schema_tolerates_existing_tables(settings):
    store = CassandraStore(settings)
    store.session = MagicMock()
    store._execute = AsyncMock(side_effect=AlreadyExists(keyspace="chimbote_travel", table="x"))

    await store.ensure_schema()

    assert store._execute.await_count == len(CASSANDRA_TABLES)
    assert await store.seed_if_empty() == 0


async def test_cassandra_ensure_schema_propagates_real_failures(settings):
    store = CassandraStore(settings)
    store.session = MagicMock()
    store._execute = AsyncMock(side_effect=RuntimeError("Unauthorized"))

    with pytest.raises(RuntimeError):
        await store.ensure_schema()


def _mongo_with_site_config(settings, existing):
    store = MongoStore(settings)
    collection = MagicMock()
    collection.find_one = AsyncMock(return_value=existing)
    collection.insert_one = AsyncMock()
    store.db = MagicMock()
    store.db.__getitem__.return_value = collection
    return store, collection


async def test_mongo_creates_site_config_when_missing(settings):
    store, collection = _mongo_with_site_config(settings, existing=None)

    assert await store.seed_if_empty() == 1
    document = collection.insert_one.await_args.args[0]
    assert document["site_name"] == "Chimbote Travel Tours"


async def test_mongo_keeps_existing_site_config(settings):
    store, collection = _mongo_with_site_config(settings, existing={"site_name": "Custom"})

    assert await store.seed_if_empty() == 0
    collection.insert_one.assert_not_awaited()
