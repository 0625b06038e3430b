"""Untappd v4 API client (beer search).

Docs: https://untappd.com/api/docs

Only used while a credential pair is stored. A 401 means the pair is no
longer valid: it is deleted so that later lookups go straight to scraping.
Every other failure also falls through to the next strategy.
"""

import logging
import time
from typing import Any

import httpx

from beer_ratings.config import settings
from beer_ratings.orchestrator.schemas import CredentialPair, RatingResult
from beer_ratings.services.preferences import PreferenceStore

logger = logging.getLogger(__name__)


class UntappdApiClient:
    """Async client for the Untappd beer search endpoint."""

    source = "api"

    def __init__(self, preferences: PreferenceStore, fallback=None, timeout: float | None = None):
        self.preferences = preferences
        self.fallback = fallback
        self.timeout = timeout or settings.http_timeout_seconds

    @property
    def search_url(self) -> str:
        return f"{settings.untappd_api_base_url}/search/beer"

    async def fetch(self, beer_name: str, brewery: str) -> RatingResult:
        """Search via the API, falling back to the configured client on any failure."""
        result = await self.attempt(beer_name, brewery)
        if result is not None:
            return result
        if self.fallback is None:
            return RatingResult(found=False, error="Untappd API unavailable", source="api")
        return await self.fallback.fetch(beer_name, brewery)

    async def attempt(self, beer_name: str, brewery: str) -> RatingResult | None:
        """Search via the API. Returns None when the caller should fall through."""
        credentials = await self.preferences.get_credentials()
        if credentials is None:
            return None
        return await self._search(f"{beer_name} {brewery}", credentials)

    async def _search(self, query: str, credentials: CredentialPair) -> RatingResult | None:
        params = {
            "q": query,
            "client_id": credentials.client_id,
            "client_secret": credentials.client_secret,
        }

        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(self.search_url, params=params)
                elapsed_ms = int((time.monotonic() - start) * 1000)

                if resp.status_code == 401:
                    logger.warning("Untappd API rejected credentials — clearing them | %dms", elapsed_ms)
                    await self.preferences.clear_credentials()
                    return None

                if not resp.is_success:
                    logger.warning("Untappd API | status=%d | %dms", resp.status_code, elapsed_ms)
                    return None

                result = self._parse_response(resp.json())
                logger.info(
                    "Untappd API OK | found=%s | %dms | query=%s",
                    result.found, elapsed_ms, query[:80],
                )
                return result

        except Exception as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.error("Untappd API error | %dms | %s", elapsed_ms, str(e)[:200])
            return None

    def _parse_response(self, data: dict[str, Any]) -> RatingResult:
        """Map the first search hit to a result. Raises on a malformed payload."""
        items = data.get("response", {}).get("beers", {}).get("items") or []
        if not items:
            return RatingResult(found=False, source="api")

        beer = items[0]["beer"]
        rating_count = beer.get("rating_count")
        beer_url = f"{settings.untappd_base_url}/b/{beer['beer_slug']}/{beer['bid']}"

        if rating_count == 0:
            return RatingResult(
                found=True,
                unrated=True,
                rating_count=0,
                beer_name=beer.get("beer_name"),
                beer_url=beer_url,
                source="api",
            )

        return RatingResult(
            found=True,
            rating=beer.get("rating_score"),
            rating_count=rating_count,
            beer_name=beer.get("beer_name"),
            beer_url=beer_url,
            source="api",
        )
