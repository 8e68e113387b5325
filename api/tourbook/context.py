"""
Application Context - datastores, status record and background runner shared with handlers
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Iterable, Optional
import asyncio
import logging

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from tourbook.config import Settings
from tourbook.utils.background import BackgroundTaskRunner
from tourbook.utils.cassandra import CassandraStore
from tourbook.utils.database import PostgresStore
from tourbook.utils.datastore import Datastore, DatastoreUnavailableError
from tourbook.utils.mongodb import MongoStore
from tourbook.utils.oracle import OracleStore
from tourbook.utils.redis import RateLimiter

logger = logging.getLogger(__name__)


@dataclass
class DatastoreState:
    name: str
    up: bool = False
    error: Optional[str] = None
    changed_at: Optional[datetime] = None


class DatastoreStatus:
    """Shared record of which datastore integrations finished bootstrapping"""

    def __init__(self, names: Iterable[str]):
        self._states: Dict[str, DatastoreState] = {name: DatastoreState(name) for name in names}

    def mark_up(self, name: str) -> None:
        self._states[name] = DatastoreState(name, up=True, changed_at=datetime.now(timezone.utc))

    def mark_down(self, name: str, error: str) -> None:
        self._states[name] = DatastoreState(name, up=False, error=error, changed_at=datetime.now(timezone.utc))

    def is_up(self, name: str) -> bool:
        state = self._states.get(name)
        return bool(state and state.up)

    @property
    def all_up(self) -> bool:
        return all(state.up for state in self._states.values())

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        return {
            name: {"up": state.up, "error": state.error, "changed_at": state.changed_at}
            for name, state in self._states.items()
        }


@dataclass
class AppContext:
    """Everything request handlers need, built once at startup"""
    settings: Settings
    postgres: PostgresStore
    mongodb: Datastore
    oracle: Datastore
    cassandra: Datastore
    rate_limiter: Optional[RateLimiter] = None
    tasks: BackgroundTaskRunner = field(default_factory=BackgroundTaskRunner)
    status: DatastoreStatus = field(init=False)
    startup_task: Optional[asyncio.Task] = None

    def __post_init__(self):
        self.status = DatastoreStatus(self.datastores.keys())

    @property
    def datastores(self) -> Dict[str, Datastore]:
        return {
            self.postgres.name: self.postgres,
            self.mongodb.name: self.mongodb,
            self.oracle.name: self.oracle,
            self.cassandra.name: self.cassandra,
        }


def build_context(settings: Settings) -> AppContext:
    """Construct stores without connecting; the lifespan brings them up"""
    rate_limiter = None
    if settings.RATE_LIMIT_ENABLED:
        rate_limiter = RateLimiter(
            settings.REDIS_URL,
            limit=settings.RATE_LIMIT_REQUESTS,
            window=settings.RATE_LIMIT_WINDOW,
        )
    return AppContext(
        settings=settings,
        postgres=PostgresStore(settings),
        mongodb=MongoStore(settings),
        oracle=OracleStore(settings),
        cassandra=CassandraStore(settings),
        rate_limiter=rate_limiter,
    )


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def _require_up(ctx: AppContext, store: Datastore) -> Datastore:
    if not ctx.status.is_up(store.name):
        raise DatastoreUnavailableError(store.name, "not initialized")
    return store


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Dependency that provides a database session
    Usage: db: AsyncSession = Depends(get_db)
    """
    ctx = get_context(request)
    _require_up(ctx, ctx.postgres)
    async with ctx.postgres.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_mongodb(request: Request) -> MongoStore:
    ctx = get_context(request)
    return _require_up(ctx, ctx.mongodb)


def get_oracle(request: Request) -> OracleStore:
    ctx = get_context(request)
    return _require_up(ctx, ctx.oracle)


def get_cassandra(request: Request) -> CassandraStore:
    ctx = get_context(request)
    return _require_up(ctx, ctx.cassandra)


async def best_effort(
    ctx: AppContext,
    store: Datastore,
    call: Callable[[], Awaitable[Any]],
    default: Any = None,
) -> Any:
    """
    Read an optional section of a composite response.

    Returns default when the store is down or the read fails, so a secondary
    store never fails the whole request.
    """
    if not ctx.status.is_up(store.name):
        return default
    try:
        return await call()
    except Exception as e:
        logger.warning(f"{store.name} section unavailable: {e}")
        return default
