"""
Redis client singleton for shared conversation state.

Only used when PENDING_CONTEXT_BACKEND=redis, so several API workers can see
the same pending booking context for a user.
"""

import logging
from functools import lru_cache

import redis.asyncio as redis
from redis import ConnectionError as RedisConnectionError

from shared.config import get_settings

logger = logging.getLogger(__name__)


@lru_cache
def get_redis_client() -> "redis.Redis[str]":
    """
    Get cached Redis client instance.

    Redis Key Patterns:
        - Pending booking context: pending_context:{user_id} (TTL from settings)

    Returns:
        Redis async client configured with a connection pool
    """
    settings = get_settings()

    try:
        client = redis.from_url(
            settings.REDIS_URL,
            max_connections=20,
            decode_responses=True,
            health_check_interval=30,
        )

        logger.info(f"Redis client initialized: {settings.REDIS_URL}")
        return client

    except RedisConnectionError as e:
        logger.error(
            f"Redis connection failed: {e}. Pending booking context unavailable.",
            exc_info=True
        )
        raise


async def close_redis_client() -> None:
    """
    Close Redis connection gracefully.

    Note:
        Should be called during application shutdown.
    """
    try:
        client = get_redis_client()
        await client.close()
        logger.info("Redis client closed")
    except Exception as e:
        logger.warning(f"Error closing Redis client: {e}")
