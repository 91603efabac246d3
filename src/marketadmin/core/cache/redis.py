"""Redis client configuration and connection management.

Provides an async Redis client with connection pooling, used as the
distributed rate limit store.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

from marketadmin.config import settings


class RedisPoolHolder:
    """Holder for the shared Redis connection pool."""

    pool: ConnectionPool | None = None


def _get_pool() -> ConnectionPool:
    """Get or create the Redis connection pool."""
    if RedisPoolHolder.pool is None:
        RedisPoolHolder.pool = ConnectionPool.from_url(
            str(settings.redis_url),
            max_connections=50,
            decode_responses=True,
        )
    return RedisPoolHolder.pool


@asynccontextmanager
async def redis_client() -> AsyncGenerator[redis.Redis, None]:  # type: ignore[type-arg]
    """Context manager for Redis client.

    Usage:
        async with redis_client() as client:
            await client.set("key", "value")
    """
    client = redis.Redis(connection_pool=_get_pool())
    try:
        yield client
    finally:
        await client.aclose()


async def close_redis_pool() -> None:
    """Close the Redis connection pool.

    Call this during application shutdown.
    """
    if RedisPoolHolder.pool is not None:
        await RedisPoolHolder.pool.disconnect()
        RedisPoolHolder.pool = None
