# ruff: noqa: PLW0603
"""Optional Redis client used for per-user rate limiting.

The application keeps working without Redis; callers must handle
``get_redis()`` returning None.
"""

import redis.asyncio as redis

from skillhub.config import get_settings
from skillhub.core.logging import get_logger


logger = get_logger(__name__)

_redis_client: redis.Redis | None = None


async def init_redis() -> redis.Redis:
    """Create the connection pool and verify it with a PING."""
    global _redis_client

    settings = get_settings()
    client = redis.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_connect_timeout,
        decode_responses=True,
    )
    try:
        await client.ping()
    except redis.ConnectionError as e:
        logger.warning("redis_connection_failed", error=str(e))
        raise

    _redis_client = client
    logger.info("redis_connected", url=settings.redis_url)
    return client


async def shutdown_redis() -> None:
    """Close the Redis connection pool."""
    global _redis_client

    if _redis_client:
        await _redis_client.aclose()
        logger.info("redis_disconnected")
        _redis_client = None


def get_redis() -> redis.Redis | None:
    """Get the Redis client, or None when Redis is unavailable."""
    return _redis_client


def rate_limit_key(scope: str, user_id: str) -> str:
    """Key holding a user's request counter for one rate-limited scope."""
    return f"ratelimit:{scope}:{user_id}"
