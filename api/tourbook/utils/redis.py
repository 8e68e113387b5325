"""
Redis-backed Request Rate Limiting
"""
import redis.asyncio as redis
from typing import Optional, Tuple
import logging
import time

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Fixed-window request counter per client.

    Each window is one Redis key that expires with the window. When Redis is
    unreachable every request is allowed (graceful degradation).
    """

    def __init__(
        self,
        url: str,
        limit: int,
        window: int,
        client: Optional[redis.Redis] = None,
    ):
        self.limit = limit
        self.window = window
        self.client = client or redis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,  # 5 second connection timeout
            socket_timeout=5,  # 5 second operation timeout
        )

    def _key(self, identity: str, now: float) -> str:
        return f"ratelimit:{identity}:{int(now // self.window)}"

    async def hit(self, identity: str) -> Tuple[bool, int]:
        """Count one request; returns (allowed, remaining)"""
        key = self._key(identity, time.time())
        try:
            pipe = self.client.pipeline()
            pipe.incr(key)
            pipe.expire(key, self.window)
            count, _ = await pipe.execute()
        except Exception as e:
            logger.warning(f"Rate limiter unavailable: {e}. Allowing request.")
            return True, self.limit

        return count <= self.limit, max(self.limit - count, 0)

    async def close(self):
        logger.info("Closing Redis connection...")
        await self.client.aclose()
        logger.info("Redis connection closed")
