"""
Redis Connection

Shared asyncio Redis client for pagination-session bookkeeping.
"""

from typing import Optional
import redis.asyncio as redis

from ..config import get_settings
from ..core.logging import get_logger

logger = get_logger(__name__)

# Redis client singleton
_redis_client: Optional[redis.Redis] = None


def get_redis_client() -> Optional[redis.Redis]:
    """
    Get or create the Redis client.

    Connection errors surface on first use; callers log and degrade
    (a feed without session dedup is still a feed).
    """
    global _redis_client

    if _redis_client is not None:
        return _redis_client

    settings = get_settings()
    if not settings.redis_url:
        logger.debug("redis_not_configured")
        return None

    _redis_client = redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_timeout=5,
        socket_connect_timeout=5,
    )
    logger.info("redis_client_created")
    return _redis_client


async def close_redis_client():
    """Close the shared client on shutdown."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
