import json
import logging
from typing import Any

import redis
from flask import current_app


logger = logging.getLogger(__name__)


def build_cache_key(name: str, key: str):
    """Cache key of a collection list (``<name>:all``) or document (``<name>:<id>``)."""
    return f"{name}:{key}"


def get_redis():
    """
    Return the Redis client of the running application.

    Returns:
        Redis | None: Client, or None when caching is disabled.
    """
    return current_app.extensions["tracker"]["redis"]


def cache_get(key: str):
    """
    Read a cached JSON payload.

    Args:
        key (str): Cache key.

    Returns:
        Any | None: Decoded payload, or None on a miss or a Redis failure.
    """
    client = get_redis()
    if client is None:
        return None
    try:
        cached = client.get(key)
    except redis.RedisError:
        logger.warning("Redis read failed for %s, falling back to MongoDB", key, exc_info=True)
        return None
    if not cached:
        logger.debug("cache miss %s", key)
        return None
    try:
        payload = json.loads(cached)
    except json.JSONDecodeError:
        return None
    logger.debug("cache hit %s", key)
    return payload


def cache_set(key: str, payload: Any):
    """
    Store a JSON payload with the configured time-to-live.

    Args:
        key (str): Cache key.
        payload (Any): JSON-serializable value.
    """
    client = get_redis()
    if client is None:
        return
    try:
        client.setex(key, current_app.config["CACHE_TTL_SECONDS"], json.dumps(payload))
    except redis.RedisError:
        logger.warning("Redis write failed for %s", key, exc_info=True)


def invalidate_cache(*keys: str):
    """
    Delete cache entries after a write.

    Args:
        *keys: Cache keys to drop.
    """
    client = get_redis()
    if client is None or not keys:
        return
    try:
        client.delete(*keys)
    except redis.RedisError:
        logger.warning("Redis invalidation failed for %s", ", ".join(keys), exc_info=True)
