"""Redis client backing the persisted translation cache tier."""

import os
import redis
import logging

logger = logging.getLogger(__name__)

# Redis connection (lazy initialization)
_redis_client = None


def get_redis(redis_url: str | None = None):
    """Get or create Redis connection. Returns None when Redis is not configured or unreachable."""
    global _redis_client

    if _redis_client is not None:
        return _redis_client

    redis_url = redis_url or os.environ.get('REDIS_URL')

    if not redis_url:
        logger.warning("REDIS_URL not set - translations are cached in memory only")
        return None

    try:
        _redis_client = redis.from_url(redis_url, decode_responses=True)
        # Test connection
        _redis_client.ping()
        logger.info("Redis connected successfully")
        return _redis_client
    except Exception as e:
        logger.error(f"Redis connection failed: {e}")
        _redis_client = None
        return None


def reset_redis():
    """Forget the cached connection (used when the app is recreated)."""
    global _redis_client
    _redis_client = None
