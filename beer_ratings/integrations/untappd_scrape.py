"""Untappd public search page client (HTML scraping).

Default strategy when no API credentials are configured, and the last resort
behind the API client. Never falls through: failures become ``error`` results.
"""

import logging
import time

import httpx

from beer_ratings.config import settings
from beer_ratings.integrations.search_page import parse_search_results
from beer_ratings.orchestrator.schemas import RatingResult

logger = logging.getLogger(__name__)


class UntappdScrapeClient:
    """Async client that scrapes the Untappd beer search page."""

    source = "scrape"

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout or settings.http_timeout_seconds

    @property
    def headers(self) -> dict[str, str]:
        return {
            "User-Agent": settings.scrape_user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        }

    async def attempt(self, beer_name: str, brewery: str) -> RatingResult:
        return await self.fetch(beer_name, brewery)

    async def fetch(self, beer_name: str, brewery: str) -> RatingResult:
        params = {"q": f"{beer_name} {brewery}", "type": "beer"}

        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                resp = await client.get(settings.untappd_search_url, params=params, headers=self.headers)
                elapsed_ms = int((time.monotonic() - start) * 1000)

                if not resp.is_success:
                    logger.warning("Untappd scrape | status=%d | %dms", resp.status_code, elapsed_ms)
                    return RatingResult(
                        found=False,
                        error=f"Scrape error: {resp.status_code}",
                        source="scrape",
                    )

                fields = parse_search_results(resp.text, beer_name)
                result = RatingResult(source="scrape", **fields)
                logger.info(
                    "Untappd scrape OK | found=%s | rating=%s | %dms | query=%s",
                    result.found, result.rating, elapsed_ms, params["q"][:80],
                )
                return result

        except Exception as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.error("Untappd scrape error | %dms | %s", elapsed_ms, str(e)[:200])
            return RatingResult(found=False, error=str(e) or type(e).__name__, source="scrape")
