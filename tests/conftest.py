"""Shared test fixtures and configuration."""

import asyncio
import os

import pytest

# No real credentials or Redis during tests
os.environ.setdefault("UNTAPPD_CLIENT_ID", "")
os.environ.setdefault("UNTAPPD_CLIENT_SECRET", "")
os.environ.setdefault("REDIS_URL", "redis://127.0.0.1:1")

from beer_ratings.orchestrator.schemas import CredentialPair  # noqa: E402
from beer_ratings.services.kv_store import KeyValueStore  # noqa: E402
from beer_ratings.services.preferences import PreferenceStore  # noqa: E402


class SuspendingStore(KeyValueStore):
    """In-memory store that yields to the loop on every call, like Redis does."""

    async def get(self, key):
        await asyncio.sleep(0)
        return await super().get(key)

    async def set(self, key, value):
        await asyncio.sleep(0)
        await super().set(key, value)


class FakeClock:
    """Monotonic clock whose sleep advances time instead of waiting."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    """In-memory key-value store (Redis never connected)."""
    return KeyValueStore()


@pytest.fixture
def suspending_store():
    return SuspendingStore()


@pytest.fixture
def preferences(store):
    return PreferenceStore(store)


@pytest.fixture
def credentials():
    return CredentialPair(client_id="test-client-id", client_secret="test-client-secret")


@pytest.fixture
def sample_search_html():
    """Untappd search results page with one rated beer."""
    return """<!DOCTYPE html>
<html>
<head><title>Untappd Search</title></head>
<body>
  <div class="results-container">
    <div class="beer-item">
      <a class="label" href="/b/cloudwater-brew-co-socal/3456789"><img src="/img/socal.png"></a>
      <div class="beer-details">
        <p class="name"><a href="/b/cloudwater-brew-co-socal/3456789">SoCal</a></p>
        <p class="brewery"><a href="/CloudwaterBrewCo">Cloudwater Brew Co.</a></p>
        <p class="style">Pale Ale - American</p>
      </div>
      <div class="details beer">
        <p class="abv">5.5% ABV</p>
        <div class="rating">
          <div class="caps" data-rating="3.812"><div class="cap cap-100"></div></div>
          <span class="num">(3.81)</span>
        </div>
        <p class="raters">1,234 Ratings</p>
      </div>
    </div>
    <div class="beer-item">
      <p class="name"><a href="/b/cloudwater-brew-co-socal-dipa/111">SoCal DIPA</a></p>
      <span class="num">(4.02)</span>
      <p class="raters">99 Ratings</p>
    </div>
  </div>
</body>
</html>"""


@pytest.fixture
def unrated_search_html():
    """A beer that exists but has no ratings: placeholder score plus "(0)"."""
    return """<html><body>
  <div class="beer-item">
    <p class="name"><a href="/b/cloudwater-brand-new/424242">Brand New</a></p>
    <div class="rating"><span class="num">(3.75)</span></div>
    <p class="raters">(0)</p>
  </div>
</body></html>"""


@pytest.fixture
def empty_search_html():
    return """<html><body>
  <div class="results-container"><p>No beers matched your search.</p></div>
</body></html>"""


@pytest.fixture
def sample_api_response():
    """Untappd v4 /search/beer response."""
    return {
        "meta": {"code": 200},
        "response": {
            "found": 1,
            "beers": {
                "count": 1,
                "items": [
                    {
                        "checkin_count": 5021,
                        "beer": {
                            "bid": 3456789,
                            "beer_name": "SoCal",
                            "beer_slug": "cloudwater-brew-co-socal",
                            "beer_style": "Pale Ale - American",
                            "beer_abv": 5.5,
                            "rating_score": 3.81,
                            "rating_count": 1234,
                        },
                        "brewery": {"brewery_name": "Cloudwater Brew Co."},
                    },
                ],
            },
        },
    }
