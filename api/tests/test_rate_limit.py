"""
Redis fixed-window rate limiter and the /api middleware
"""
from unittest.mock import AsyncMock, MagicMock

from redis.exceptions import ConnectionError as RedisConnectionError

from tourbook.utils.redis import RateLimiter


def _redis_with_counts(*counts):
    pipe = MagicMock()
    pipe.execute = AsyncMock(side_effect=[[count, True] for count in counts])
    client = MagicMock()
    client.pipeline.return_value = pipe
    return client, pipe


async def test_allows_up_to_the_limit_per_window():
    client, pipe = _redis_with_counts(1, 2, 3)
    limiter = RateLimiter("redis://unused", limit=2, window=900, client=client)

    assert await limiter.hit("10.0.0.1") == (True, 1)
    assert await limiter.hit("10.0.0.1") == (True, 0)
    assert await limiter.hit("10.0.0.1") == (False, 0)

    key = pipe.incr.call_args.args[0]
    assert key.startswith("ratelimit:10.0.0.1:")
    pipe.expire.assert_called_with(key, 900)


async def test_redis_outage_allows_requests():
    pipe = MagicMock()
    pipe.execute = AsyncMock(side_effect=RedisConnectionError("Connection refused"))
    client = MagicMock()
    client.pipeline.return_value = pipe
    limiter = RateLimiter("redis://unused", limit=1, window=900, client=client)

    assert await limiter.hit("10.0.0.1") == (True, 1)


async def test_middleware_limits_api_routes_only(client, context):
    redis_client, _ = _redis_with_counts(1, 2)
    context.rate_limiter = RateLimiter("redis://unused", limit=1, window=900, client=redis_client)

    first = await client.get("/api/destinations")
    assert first.status_code == 200
    assert first.headers["X-RateLimit-Limit"] == "1"
    assert first.headers["X-RateLimit-Remaining"] == "0"

    second = await client.get("/api/destinations")
    assert second.status_code == 429
    assert second.json() == {"detail": "Too many requests"}

    # Health and metrics are not counted
    assert (await client.get("/health")).status_code == 200
    assert (await client.get("/metrics")).status_code == 200
    assert redis_client.pipeline.call_count == 2
