"""Shared infrastructure dependencies.

Provides ONLY cross-cutting infrastructure resources (Redis client, cache,
job locks). Does NOT import from bounded contexts to maintain DDD boundaries.
"""

from functools import lru_cache

from redis.asyncio import Redis

from infrastructure.cache import CacheStore
from infrastructure.locks import JobLock
from infrastructure.settings import get_cache_settings


@lru_cache
def get_redis_client() -> Redis:
    """Get application-scoped async Redis client (singleton).

    The client owns its own connection pool and is shared across requests.

    Returns:
        Redis client configured from cache settings.
    """
    settings = get_cache_settings()
    return Redis.from_url(settings.url, decode_responses=True)


def get_cache_store() -> CacheStore:
    """Get the advisory cache store (FastAPI dependency)."""
    settings = get_cache_settings()
    return CacheStore(get_redis_client(), key_prefix=settings.key_prefix)


def get_job_lock() -> JobLock:
    """Get the job lock used to serialize batch commands."""
    settings = get_cache_settings()
    return JobLock(
        get_redis_client(),
        key_prefix=settings.key_prefix,
        timeout=settings.job_lock_timeout,
    )
