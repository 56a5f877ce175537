"""
backend/fundiconnect/core/cache.py

Async Redis Cache

Provides the shared async Redis client and key helpers used for read caches
(e.g. provider rating summaries). Caching is best-effort: when Redis is
disabled or unreachable callers fall back to the database.
"""

import logging
from typing import Any

import redis.asyncio as redis

from fundiconnect.core.config import settings

# ---------------------------------------------------
# Logger Configuration
# ---------------------------------------------------
logger = logging.getLogger(__name__)

# ---------------------------------------------------
# Redis Client Initialization
# ---------------------------------------------------
redis_client: redis.Redis | None = None  # type: ignore[type-arg]

if settings.REDIS_ENABLED:
    try:
        redis_client = redis.Redis(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            db=settings.REDIS_DB,
            decode_responses=True,
        )
        logger.info(
            f"[REDIS ASYNC] Initialized async Redis client for {settings.redis_url}"
        )
    except redis.RedisError as e:
        logger.error(f"[REDIS ASYNC] Initialization failed: {e}")
        redis_client = None
else:
    logger.info("[REDIS ASYNC] Redis disabled by configuration, caching off.")


# ---------------------------------------------------
# Key Helpers
# ---------------------------------------------------
def _cache_key(namespace: str, identifier: Any) -> str:
    """Build a namespaced cache key, e.g. `cache:fundiconnect:review:summary:provider:<id>`."""
    return f"{settings.CACHE_PREFIX}{namespace}:{identifier}"


async def invalidate_keys(cache: Any, *keys: str) -> None:
    """Delete the given keys, logging (never raising) on Redis errors."""
    if not cache or not keys:
        return
    try:
        await cache.delete(*keys)
        logger.debug(f"[CACHE] Invalidated keys: {keys}")
    except redis.RedisError as e:
        logger.error(f"[CACHE ERROR] Failed to delete keys {keys}: {e}")
