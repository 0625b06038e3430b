"""Rating resolver — turns (beer name, brewery) into a rating result.

Responsibilities:
  - Check the TTL cache before doing any network work
  - Queue cache misses on the global request budget
  - Try the source strategies in order (API when configured, then scraping)
  - Cache results that carry no error
  - Never raise: every path ends in a RatingResult
"""

import logging
from typing import Protocol, Sequence

from beer_ratings.orchestrator.schemas import RatingResult, RatingSource
from beer_ratings.services.cache import RatingCache
from beer_ratings.services.rate_limiter import RequestQueue
from beer_ratings.utils.cache_keys import cache_key

logger = logging.getLogger(__name__)


class RatingSourceClient(Protocol):
    source: RatingSource

    async def attempt(self, beer_name: str, brewery: str) -> RatingResult | None:
        """Return a result, or None to let the next strategy try."""
        ...


class RatingResolver:
    """Cache → request queue → source strategies → cache."""

    def __init__(
        self,
        cache: RatingCache,
        queue: RequestQueue,
        sources: Sequence[RatingSourceClient],
    ):
        self.cache = cache
        self.queue = queue
        self.sources = list(sources)

    async def resolve(self, beer_name: str, brewery: str) -> RatingResult:
        key = cache_key(brewery, beer_name)

        cached = await self.cache.get(key)
        if cached is not None:
            return cached.data.model_copy(update={"from_cache": True})

        try:
            result = await self.queue.enqueue(lambda: self._fetch(beer_name, brewery))
        except Exception as e:
            logger.error("Resolve failed | key=%s | %s", key[:40], str(e)[:200])
            return RatingResult(found=False, error=str(e) or type(e).__name__, source="scrape")

        if result.error is None:
            await self.cache.set(key, result)

        return result

    async def _fetch(self, beer_name: str, brewery: str) -> RatingResult:
        for client in self.sources:
            result = await client.attempt(beer_name, brewery)
            if result is not None:
                return result
            logger.debug("Source %s unavailable — trying next", client.source)

        logger.error("No rating source produced a result | beer=%s", beer_name[:80])
        return RatingResult(found=False, error="No rating source available", source="scrape")
