"""Key-value store with Redis backend and in-memory fallback.

Values are JSON documents. The store gives no consistency guarantees beyond
last-write-wins; callers own any structure inside a value.

Graceful degradation: if Redis is unavailable, uses a bounded
cachetools.LRUCache in-memory.
"""

import copy
import json
import logging
from typing import Any

from cachetools import LRUCache

from beer_ratings.config import settings

logger = logging.getLogger(__name__)


class KeyValueStore:
    """Async get/set/remove with Redis primary and in-memory fallback."""

    def __init__(self, fallback_size: int | None = None):
        self._redis = None
        self._fallback: LRUCache = LRUCache(maxsize=fallback_size or settings.fallback_store_size)
        self._available = False

    @property
    def redis_available(self) -> bool:
        return self._available

    async def connect(self) -> bool:
        """Connect to Redis. Returns True on success."""
        try:
            import redis.asyncio as aioredis

            self._redis = aioredis.from_url(
                settings.redis_url,
                decode_responses=True,
                socket_connect_timeout=3,
            )
            await self._redis.ping()
            self._available = True
            return True
        except Exception as e:
            logger.warning("Redis connection failed — using in-memory fallback: %s", str(e)[:100])
            self._redis = None
            self._available = False
            return False

    async def disconnect(self):
        """Close Redis connection."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            self._available = False

    async def get(self, key: str) -> Any | None:
        """Read a value. Returns None when absent."""
        if self._available and self._redis:
            try:
                raw = await self._redis.get(key)
                if raw is not None:
                    return json.loads(raw)
                return None
            except Exception as e:
                logger.debug("Redis GET error: %s", str(e)[:100])

        return copy.deepcopy(self._fallback.get(key))

    async def set(self, key: str, value: Any):
        """Write a value, replacing whatever was stored under the key."""
        if self._available and self._redis:
            try:
                await self._redis.set(key, json.dumps(value, ensure_ascii=False))
            except Exception as e:
                logger.debug("Redis SET error: %s", str(e)[:100])

        # Always write to in-memory fallback too
        self._fallback[key] = copy.deepcopy(value)

    async def remove(self, *keys: str):
        """Delete one or more keys. Missing keys are ignored."""
        if self._available and self._redis:
            try:
                await self._redis.delete(*keys)
            except Exception as e:
                logger.debug("Redis DELETE error: %s", str(e)[:100])

        for key in keys:
            self._fallback.pop(key, None)
