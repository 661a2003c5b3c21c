"""
Redis cache layer — synchronous Redis client with typed helpers.

Provides:
    • Client construction from settings (auth + db index + connect timeout)
    • JSON serialisation cache helpers
    • TTL-aware get/set
    • Counters

Usage:
    from microcli.app.core.cache import create_redis, cache_get, cache_set

    client = create_redis(settings)
    cache_set(client, "user:john_doe", row, ttl=600)
    cached = cache_get(client, "user:john_doe")
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import redis

from microcli.app.core.config import Settings, get_settings
from microcli.app.core.errors import CacheError

logger = logging.getLogger(__name__)


def create_redis(config: Settings) -> redis.Redis:
    """Open the process-wide Redis client and verify it with PING."""
    client = redis.Redis(
        host=config.REDIS_HOST,
        port=config.REDIS_PORT,
        db=config.REDIS_DB,
        password=config.REDIS_AUTH or None,
        socket_connect_timeout=config.REDIS_TIMEOUT,
        decode_responses=True,
    )
    try:
        client.ping()
    except redis.RedisError as e:
        raise CacheError(
            f"Could not connect to Redis: {e}",
            host=config.REDIS_HOST,
            port=config.REDIS_PORT,
            db=config.REDIS_DB,
        ) from e
    logger.info(
        "Redis connected: %s:%s/%s",
        config.REDIS_HOST, config.REDIS_PORT, config.REDIS_DB,
    )
    return client


def cache_get(client: redis.Redis, key: str) -> Optional[Any]:
    """Get a JSON-cached value by key. Returns None on miss."""
    try:
        raw = client.get(key)
    except redis.RedisError as e:
        raise CacheError(f"Cache GET failed for {key}: {e}", key=key) from e
    if raw is None:
        return None
    return json.loads(raw)


def cache_set(client: redis.Redis, key: str, value: Any, ttl: Optional[int] = None) -> None:
    """Set a JSON-cached value with TTL (seconds, default CACHE_TTL; 0 never expires)."""
    serialised = json.dumps(value, default=str)
    expire = get_settings().CACHE_TTL if ttl is None else ttl
    try:
        client.set(key, serialised, ex=expire or None)
    except redis.RedisError as e:
        raise CacheError(f"Cache SET failed for {key}: {e}", key=key) from e


def cache_delete(client: redis.Redis, key: str) -> bool:
    """Delete a cache key. True if it existed."""
    try:
        return bool(client.delete(key))
    except redis.RedisError as e:
        raise CacheError(f"Cache DELETE failed for {key}: {e}", key=key) from e


def cache_incr(client: redis.Redis, key: str, amount: int = 1) -> int:
    """Increment a counter and return the new value."""
    try:
        value = int(client.incr(key, amount))
    except redis.RedisError as e:
        raise CacheError(f"Cache INCR failed for {key}: {e}", key=key) from e
    logger.debug("Counter %s = %d", key, value)
    return value


def close_redis(client: redis.Redis) -> None:
    """Close Redis connection."""
    client.close()
    logger.info("Redis connection closed")
