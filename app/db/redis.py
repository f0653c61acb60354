"""Redis connection management.

Mirrors engine.py: when REDIS_URL is set a shared connection pool is
created at import time; when it is not, redis_pool is None and the
progress view cache stays in process memory.  Redis only ever holds
derived, expiring data here, so losing it costs latency, not progress.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

from app.core.config import SETTINGS

logger = logging.getLogger(__name__)

if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,
        max_connections=20,
    )
else:
    redis_pool = None


@asynccontextmanager
async def lifespan_redis():
    """Startup/shutdown hook for Redis.  Mirrors lifespan_db()."""
    if redis_pool is None:
        logger.info("No REDIS_URL configured, caching in process memory")
        yield
        return

    try:
        await redis_pool.ping()  # type: ignore[misc]
        logger.info("Redis connected")
    except Exception:
        # Start anyway; /health reports redis as degraded.
        logger.exception("Redis connection failed on startup")

    yield

    await redis_pool.aclose()
    logger.info("Redis connection pool closed")
