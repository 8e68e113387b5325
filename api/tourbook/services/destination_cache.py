"""
Destination Cache Service - cache-aside reads over PostgreSQL with a Cassandra cache
"""
import logging
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from tourbook.models.destination import Destination
from tourbook.schemas.destination import DestinationResponse
from tourbook.utils.background import BackgroundTaskRunner
from tourbook.utils.cassandra import CassandraStore

logger = logging.getLogger(__name__)

SOURCE_CACHE = "cache"
SOURCE_DATABASE = "database"


class DestinationCacheService:
    """
    Reads a destination from the Cassandra cache first, falling back to
    PostgreSQL on a miss and repopulating the cache in the background.

    Entries are never invalidated on write; Cassandra expires them after
    the configured TTL.
    """

    def __init__(
        self,
        cassandra: Optional[CassandraStore],
        tasks: BackgroundTaskRunner,
        ttl: int,
    ):
        # None when Cassandra is not available: every read goes to the database
        self.cassandra = cassandra
        self.tasks = tasks
        self.ttl = ttl

    async def _from_cache(self, destination_id: int) -> Optional[DestinationResponse]:
        if self.cassandra is None:
            return None
        try:
            cached = await self.cassandra.get_cached_destination(destination_id)
        except Exception as e:
            logger.warning(f"Destination cache read failed for {destination_id}: {e}. Using database.")
            return None
        if cached is None:
            return None
        return DestinationResponse(**cached)

    async def get_destination(
        self,
        db: AsyncSession,
        destination_id: int,
    ) -> Tuple[Optional[DestinationResponse], str]:
        """Returns (destination or None, "cache" | "database")"""
        cached = await self._from_cache(destination_id)
        if cached is not None:
            logger.debug(f"Destination {destination_id} served from cache")
            return cached, SOURCE_CACHE

        destination = await db.get(Destination, destination_id)
        if destination is None:
            return None, SOURCE_DATABASE

        response = DestinationResponse.model_validate(destination)
        if self.cassandra is not None:
            self.tasks.spawn(
                self.cassandra.cache_destination(response.model_dump(), self.ttl),
                name=f"cache_destination:{destination_id}",
            )
        return response, SOURCE_DATABASE
