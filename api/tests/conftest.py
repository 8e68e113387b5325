import pytest
from httpx import ASGITransport, AsyncClient

from tourbook.config import Settings
from tourbook.context import AppContext
from tourbook.main import create_app
from tourbook.startup import close_datastores, initialize_datastores
from tourbook.utils.database import PostgresStore
from tests.fakes import FakeCassandraStore, FakeMongoStore, FakeOracleStore


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'tourbook.db'}",
        RATE_LIMIT_ENABLED=False,
        CACHE_TTL_DESTINATIONS=120,
    )


@pytest.fixture
def mongodb():
    return FakeMongoStore()


@pytest.fixture
def oracle():
    return FakeOracleStore()


@pytest.fixture
def cassandra():
    return FakeCassandraStore()


@pytest.fixture
async def context(settings, mongodb, oracle, cassandra):
    """Real SQLAlchemy store on SQLite plus in-memory MongoDB, Oracle and Cassandra"""
    ctx = AppContext(
        settings=settings,
        postgres=PostgresStore(settings),
        mongodb=mongodb,
        oracle=oracle,
        cassandra=cassandra,
    )
    await initialize_datastores(ctx)
    yield ctx
    await ctx.tasks.drain()
    await close_datastores(ctx)


@pytest.fixture
def app(context):
    return create_app(context)


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client
