# medistock/core/redis.py
"""
Redis-backed cache for dispenser stock snapshots.

The snapshot feeds map/list presentation only; reservation checks always
read the authoritative inventory rows inside a transaction. The app boots
and serves uncached reads when Redis is not configured or unreachable.
"""

import json
import logging
from functools import lru_cache
from typing import Any, Optional

import redis

from medistock.core.config import get_settings

logger = logging.getLogger(__name__)

STOCK_CACHE_PREFIX = "medistock:stock:"


@lru_cache
def get_redis_client() -> Optional[redis.Redis]:
    """
    Return a connected client, or None when Redis is disabled/unavailable.
    """
    settings = get_settings()
    if not settings.redis_url:
        logger.info("REDIS_URL not set. Stock snapshot caching disabled.")
        return None

    try:
        client = redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        client.ping()
    except redis.RedisError as e:
        logger.warning("Failed to connect to Redis: %s. Running without stock cache.", e)
        return None

    logger.info("Redis connection established successfully.")
    return client


def _stock_key(dispenser_id: int | None) -> str:
    return f"{STOCK_CACHE_PREFIX}{dispenser_id if dispenser_id is not None else 'all'}"


def get_cached_stock(dispenser_id: int | None) -> Optional[list[dict[str, Any]]]:
    client = get_redis_client()
    if not client:
        return None
    try:
        raw = client.get(_stock_key(dispenser_id))
    except redis.RedisError as e:
        logger.warning("Redis GET error for stock snapshot dispenser=%s: %s", dispenser_id, e)
        return None
    return json.loads(raw) if raw else None


def set_cached_stock(dispenser_id: int | None, rows: list[dict[str, Any]]) -> bool:
    client = get_redis_client()
    if not client:
        return False
    try:
        client.setex(_stock_key(dispenser_id), get_settings().stock_cache_ttl_seconds, json.dumps(rows))
        return True
    except redis.RedisError as e:
        logger.warning("Redis SET error for stock snapshot dispenser=%s: %s", dispenser_id, e)
        return False


def invalidate_stock_cache() -> bool:
    """Drop every cached snapshot after inventory changed."""
    client = get_redis_client()
    if not client:
        return False
    try:
        keys = list(client.scan_iter(match=f"{STOCK_CACHE_PREFIX}*"))
        if keys:
            client.delete(*keys)
        return True
    except redis.RedisError as e:
        logger.warning("Redis invalidation of stock snapshots failed: %s", e)
        return False
