from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from wortschatz.settings import get_settings

logger = logging.getLogger(__name__)

_DEFAULT_TTL_SECONDS = 600
_CATEGORY_LIST_PREFIX = "library:categories"
_SELECTED_CATEGORY_PREFIX = "library:selected-category"

_redis_client: Redis | None = None
_client_lock = asyncio.Lock()
_redis_disabled = False

_UNAVAILABLE_ERRORS = (RedisConnectionError, RedisTimeoutError, OSError)


def category_list_key(user_id: str) -> str:
    return f"{_CATEGORY_LIST_PREFIX}:{user_id}"


def selected_category_key(user_id: str) -> str:
    return f"{_SELECTED_CATEGORY_PREFIX}:{user_id}"


async def get_redis() -> Redis | None:
    """Get Redis client, returning None if connection fails."""
    global _redis_client, _redis_disabled

    if _redis_disabled:
        logger.debug("Redis connection disabled after previous failure; skipping attempt.")
        return None

    # Acquire the lock before checking the singleton so concurrent first calls
    # create exactly one client.
    async with _client_lock:
        if _redis_client is not None:
            return _redis_client

        if _redis_disabled:
            return None

        client = Redis.from_url(
            get_settings().redis_url, decode_responses=True, encoding="utf-8"
        )
        try:
            await client.ping()
        except _UNAVAILABLE_ERRORS as exc:
            logger.warning(f"Redis connection failed: {exc}. Caching will be disabled.")
            _redis_disabled = True
            return None

        _redis_client = client
        logger.info("Redis connection established successfully")
        return _redis_client


class CacheClient:
    """JSON cache facade that degrades to a no-op when Redis is unavailable."""

    def __init__(self, redis: Redis | None) -> None:
        self._redis = redis

    @property
    def enabled(self) -> bool:
        return self._redis is not None

    async def get_json(self, key: str) -> Any:
        if self._redis is None:
            return None
        try:
            payload = await self._redis.get(key)
        except _UNAVAILABLE_ERRORS as exc:
            logger.debug(f"Redis get failed for key {key}: {exc}")
            return None
        if payload is None:
            return None
        try:
            return json.loads(payload)
        except json.JSONDecodeError:
            logger.warning("Discarding undecodable cache payload under %s", key)
            return None

    async def set_json(self, key: str, value: Any, ttl: int | None = None) -> None:
        if self._redis is None:
            return
        encoded = json.dumps(value, default=str)
        try:
            await self._redis.set(key, encoded, ex=ttl or _DEFAULT_TTL_SECONDS)
        except _UNAVAILABLE_ERRORS as exc:
            logger.debug(f"Redis set failed for key {key}: {exc}")

    async def delete(self, *keys: str) -> None:
        if self._redis is None or not keys:
            return
        try:
            await self._redis.delete(*keys)
        except _UNAVAILABLE_ERRORS as exc:
            logger.debug(f"Redis delete failed: {exc}")


async def get_cache_client() -> CacheClient:
    redis = await get_redis()
    return CacheClient(redis)


async def close_redis() -> None:
    """Close the global Redis connection gracefully."""
    global _redis_client, _redis_disabled
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
    _redis_disabled = False


__all__ = [
    "CacheClient",
    "category_list_key",
    "close_redis",
    "get_cache_client",
    "get_redis",
    "selected_category_key",
]
