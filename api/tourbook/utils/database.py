"""
PostgreSQL Connection & Bootstrap - source of truth for destinations, reservations and users
"""
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy import select, func, text
from typing import Any, Dict, Optional
import logging

from tourbook.config import Settings
from tourbook.utils.datastore import Datastore, ignore_already_exists
from tourbook.utils.seed_data import SAMPLE_DESTINATIONS

logger = logging.getLogger(__name__)

# Base class for models
Base = declarative_base()


class PostgresStore(Datastore):
    """Async SQLAlchemy engine plus session factory for the relational store"""

    name = "postgresql"

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None

    @property
    def is_connected(self) -> bool:
        return self.engine is not None

    def _engine_options(self) -> Dict[str, Any]:
        url = self.settings.SQLALCHEMY_DATABASE_URL
        options: Dict[str, Any] = {
            "echo": self.settings.DEBUG,
            "pool_pre_ping": True,
        }
        if url.startswith("postgresql"):
            options.update(
                pool_size=self.settings.DB_POOL_SIZE,
                max_overflow=self.settings.DB_MAX_OVERFLOW,
                pool_recycle=3600,  # Recycle connections after 1 hour
                pool_timeout=10,  # Wait max 10 seconds for a connection from pool
                connect_args={
                    "timeout": self.settings.DB_CONNECT_TIMEOUT,
                    "command_timeout": 30,  # Query timeout in seconds
                    "server_settings": {
                        "statement_timeout": "30000",  # 30 seconds max per statement
                    },
                },
            )
        return options

    async def connect(self) -> None:
        """Create the engine and test the connection"""
        logger.info("Initializing PostgreSQL connection...")
        engine = create_async_engine(self.settings.SQLALCHEMY_DATABASE_URL, **self._engine_options())
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception:
            await engine.dispose()
            raise

        self.engine = engine
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )
        logger.info(f"PostgreSQL connection established ({engine.url.database})")

    async def ensure_schema(self) -> None:
        """Create destinations, reservations and users tables if missing"""
        self._require()
        import tourbook.models  # noqa: F401  (registers tables on Base.metadata)

        with ignore_already_exists("PostgreSQL tables"):
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

        # Tables created before the phone column existed
        if self.engine.dialect.name == "postgresql":
            with ignore_already_exists("users.phone"):
                async with self.engine.begin() as conn:
                    await conn.execute(text("ALTER TABLE users ADD COLUMN IF NOT EXISTS phone VARCHAR(20)"))

        logger.info("PostgreSQL tables ready")

    async def seed_if_empty(self) -> int:
        """Insert the sample tours only when the destinations table is empty"""
        self._require()
        from tourbook.models.destination import Destination

        async with self.session_factory() as session:
            count = await session.scalar(select(func.count()).select_from(Destination))
            if count:
                logger.info(f"Sample destinations already present ({count} rows)")
                return 0

            session.add_all([Destination(**row) for row in SAMPLE_DESTINATIONS])
            await session.commit()

        logger.info(f"Inserted {len(SAMPLE_DESTINATIONS)} sample destinations")
        return len(SAMPLE_DESTINATIONS)

    async def ping(self) -> Dict[str, Any]:
        self._require()
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"database": self.engine.url.database}

    async def close(self) -> None:
        """Close database connection"""
        if self.engine is not None:
            logger.info("Closing PostgreSQL connection...")
            await self.engine.dispose()
            self.engine = None
            self.session_factory = None
            logger.info("PostgreSQL connection closed")
