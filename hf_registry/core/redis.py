"""
Optional Redis cache for dashboard aggregates.

Only the registry-wide half of the KPI header is cached, keyed by the
snapshot version, so a stale entry is never read after a write. Without
REDIS_URL (or with Redis down) every helper is a no-op and the numbers are
recomputed on each request.
"""

import json
import logging
from functools import lru_cache
from typing import Any, Optional

import redis

from hf_registry.core.config import get_settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "hf_registry"


@lru_cache
def get_redis_client() -> Optional[redis.Redis]:
    """
    Connected client, or None when caching is disabled.
    The first answer is kept for the life of the process.
    """
    redis_url = get_settings().redis_url
    if not redis_url:
        logger.info("REDIS_URL not set. Dashboard stats will not be cached.")
        return None

    try:
        client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        client.ping()
    except redis.RedisError as e:
        logger.warning(f"Redis unreachable ({e}). Dashboard stats will not be cached.")
        return None

    logger.info("Redis stats cache enabled.")
    return client


def stats_cache_key(registry_instance: str, version: int) -> str:
    return f"{KEY_PREFIX}:{registry_instance}:stats:v{version}"


def get_cached_json(key: str) -> Optional[Any]:
    """Decoded value, or None on a miss, a Redis error or a corrupt entry."""
    client = get_redis_client()
    if client is None:
        return None

    try:
        raw = client.get(key)
    except redis.RedisError as e:
        logger.warning(f"Redis GET failed for '{key}': {e}")
        return None
    if raw is None:
        return None

    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Discarding corrupt cache entry '{key}'.")
        return None


def set_cached_json(key: str, value: Any, ttl: int) -> bool:
    client = get_redis_client()
    if client is None:
        return False

    try:
        client.setex(key, ttl, json.dumps(value))
    except redis.RedisError as e:
        logger.warning(f"Redis SETEX failed for '{key}': {e}")
        return False
    return True
