"""
Redis client initialization and connection management.

Used by the Redis-backed world state store.
"""

import redis.asyncio as redis
from postal_ledger.app.core.config import settings


# Create async Redis client (bytes in, bytes out: ledger values are raw JSON bytes)
redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=False,
)


async def get_redis():
    """
    Get Redis client instance.

    FastAPI dependency (used by the health check).
    """
    return redis_client


async def ping_redis(client=None) -> bool:
    """
    Test Redis connection.

    Args:
        client: Client to ping; defaults to the shared client

    Returns:
        True if connection successful, False otherwise
    """
    try:
        return bool(await (client or redis_client).ping())
    except redis.RedisError:
        return False
