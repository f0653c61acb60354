"""Read-through cache service.

Flow:  caller -> cache -> hit  -> return
       caller -> cache -> miss -> load from store -> populate -> return

Entries carry a TTL as a safety net and are deleted explicitly whenever
the underlying data changes (a progress report, an enrollment, a final
exam reset).  Either mechanism alone leaves a gap: TTL alone serves
stale views until expiry, explicit deletes alone leave stale data
forever if a write path forgets to invalidate.

The cache never participates in progress correctness.  A lost
invalidation only means a dashboard lags by up to one TTL.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from app.core.metrics import CACHE_OPERATIONS
from app.db.redis import redis_pool


def progress_key(learner_id: str, course_id: str) -> str:
    return f"progress:{learner_id}:{course_id}"


@runtime_checkable
class CacheService(Protocol):
    async def get(self, key: str) -> str | None:
        """Fetch a cached value.  Returns None on cache miss."""
        ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a value with a TTL (time to live)."""
        ...

    async def delete(self, key: str) -> None:
        """Explicitly invalidate a cached entry."""
        ...


class InMemoryCacheService:
    """Process-local cache for dev and tests.  TTLs are not enforced.

    The autouse fixture in conftest.py clears the store between tests.
    """

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        value = self._store.get(key)
        CACHE_OPERATIONS.labels(operation="hit" if value is not None else "miss").inc()
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        self._store[key] = value
        CACHE_OPERATIONS.labels(operation="set").inc()

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)
        CACHE_OPERATIONS.labels(operation="delete").inc()


class RedisCacheService:
    """Redis-backed cache shared by every API instance."""

    # Namespaces cache entries inside a Redis shared with other services.
    _PREFIX = "lms-cache:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def get(self, key: str) -> str | None:
        value = await self._redis.get(f"{self._PREFIX}{key}")
        CACHE_OPERATIONS.labels(operation="hit" if value is not None else "miss").inc()
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        await self._redis.setex(f"{self._PREFIX}{key}", ttl_seconds, value)
        CACHE_OPERATIONS.labels(operation="set").inc()

    async def delete(self, key: str) -> None:
        await self._redis.delete(f"{self._PREFIX}{key}")
        CACHE_OPERATIONS.labels(operation="delete").inc()


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

if redis_pool is not None:
    cache_service: CacheService = RedisCacheService(redis_pool)
else:
    cache_service = InMemoryCacheService()
