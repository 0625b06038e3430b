"""Rating cache with TTL and hit/miss counters on top of the key-value store.

All entries live in one document (``beerRatingsCache``) mapping cache keys to
``{data, timestamp}``; counters live in ``cacheStats``. Expiry is lazy: a stale
entry stays in the document until the next lookup of that exact key.

Read-modify-write of either document happens under one lock per cache, so
concurrent lookups cannot overwrite each other's entries or counts.

Graceful degradation: store failures never reach the caller. A failed read is
a miss, a failed write only loses the memoization.
"""

import asyncio
import logging
import time

from pydantic import ValidationError

from beer_ratings.config import settings
from beer_ratings.orchestrator.schemas import CacheEntry, CacheStats, RatingResult
from beer_ratings.services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

CACHE_DOCUMENT_KEY = "beerRatingsCache"
STATS_DOCUMENT_KEY = "cacheStats"


def _now_ms() -> int:
    return int(time.time() * 1000)


class RatingCache:
    """TTL cache of rating results keyed by ``cache_key(brewery, beer_name)``."""

    def __init__(self, store: KeyValueStore, ttl_seconds: int | None = None):
        self._store = store
        ttl = ttl_seconds if ttl_seconds is not None else settings.cache_ttl_seconds
        self._ttl_ms = ttl * 1000
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> CacheEntry | None:
        """Return the fresh entry for ``key``, or None on miss / expiry / error."""
        async with self._lock:
            return await self._get(key)

    async def _get(self, key: str) -> CacheEntry | None:
        try:
            cache = await self._store.get(CACHE_DOCUMENT_KEY) or {}
            raw = cache.get(key)

            if raw is None:
                await self._count("misses")
                return None

            if _now_ms() - raw["timestamp"] > self._ttl_ms:
                del cache[key]
                await self._store.set(CACHE_DOCUMENT_KEY, cache)
                await self._count("misses")
                logger.info("Cache EXPIRED | key=%s", key[:40])
                return None

            entry = CacheEntry.model_validate(raw)
            await self._count("hits")
            logger.info("Cache HIT | key=%s", key[:40])
            return entry

        except (KeyError, TypeError, ValidationError) as e:
            logger.warning("Cache entry unreadable | key=%s | %s", key[:40], str(e)[:200])
            await self._count("misses")
            return None
        except Exception as e:
            logger.error("Cache get error | key=%s | %s", key[:40], str(e)[:200])
            return None

    async def set(self, key: str, data: RatingResult):
        """Store ``data`` under ``key``, overwriting any previous entry."""
        async with self._lock:
            await self._set(key, data)

    async def _set(self, key: str, data: RatingResult):
        try:
            cache = await self._store.get(CACHE_DOCUMENT_KEY) or {}
            cache[key] = {"data": data.to_cache_payload(), "timestamp": _now_ms()}
            await self._store.set(CACHE_DOCUMENT_KEY, cache)
            logger.info("Cache SET | key=%s | entries=%d", key[:40], len(cache))
        except Exception as e:
            logger.error("Cache set error | key=%s | %s", key[:40], str(e)[:200])

    async def clear(self):
        """Delete every cached rating and reset the counters."""
        try:
            async with self._lock:
                await self._store.remove(CACHE_DOCUMENT_KEY, STATS_DOCUMENT_KEY)
            logger.info("Cache cleared")
        except Exception as e:
            logger.error("Cache clear error: %s", str(e)[:200])

    async def stats(self) -> CacheStats:
        try:
            cache = await self._store.get(CACHE_DOCUMENT_KEY) or {}
            counters = await self._store.get(STATS_DOCUMENT_KEY) or {}
        except Exception as e:
            logger.error("Cache stats error: %s", str(e)[:200])
            return CacheStats()

        hits = counters.get("hits", 0)
        misses = counters.get("misses", 0)
        lookups = hits + misses
        return CacheStats(
            cached_count=len(cache),
            hits=hits,
            misses=misses,
            hit_rate=round(100 * hits / lookups) if lookups else 0,
        )

    async def _count(self, field: str):
        """Bump a persisted counter. Caller holds the lock."""
        try:
            counters = await self._store.get(STATS_DOCUMENT_KEY) or {"hits": 0, "misses": 0}
            counters[field] = counters.get(field, 0) + 1
            await self._store.set(STATS_DOCUMENT_KEY, counters)
        except Exception as e:
            logger.debug("Cache stats update skipped: %s", str(e)[:100])
