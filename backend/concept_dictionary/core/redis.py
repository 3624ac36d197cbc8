"""Redis connection shared by the RQ maintenance queues and /ready."""

import logging

from redis import Redis
from redis.exceptions import RedisError

from concept_dictionary.core.config import settings

logger = logging.getLogger(__name__)

# Redis connection instance (lazy initialized)
_redis_client: Redis | None = None


def get_redis() -> Redis:
    """Get or create the Redis connection used by the job queues.

    RQ stores pickled job payloads, so responses are left as bytes
    (no ``decode_responses``). Connection is lazily created on first call.

    Returns:
        Redis client instance.
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = Redis.from_url(
            settings.redis_url,
            socket_timeout=settings.redis_socket_timeout,
            socket_connect_timeout=settings.redis_socket_timeout,
        )
    return _redis_client


def close_redis() -> None:
    """Close Redis connection.

    Should be called during application shutdown.
    """
    global _redis_client
    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


def ping_redis() -> bool:
    """Check whether maintenance jobs can be queued.

    Returns:
        True if Redis responds to ping, False otherwise.
    """
    try:
        return bool(get_redis().ping())
    except (RedisError, OSError) as e:
        logger.warning(f"Redis unavailable, maintenance jobs cannot be queued: {e}")
        return False
