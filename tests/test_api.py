"""End-to-end API tests: the FastAPI app with Redis unavailable and Untappd mocked."""

import re

import pytest
from httpx import ASGITransport, AsyncClient

from beer_ratings import main
from beer_ratings.main import app
from beer_ratings.orchestrator.schemas import RatingResult

SEARCH_URL = re.compile(r"https://untappd\.com/search.*")


@pytest.fixture
async def client():
    await main.rating_cache.clear()
    await main.preferences.clear_credentials()
    await main.preferences.set_enabled(True)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["source"] == "scrape"
        assert data["pending"] == 0
        assert data["redis"] is False


class TestRatingEndpoint:
    @pytest.mark.asyncio
    async def test_rating_then_cached(self, client, httpx_mock, sample_search_html):
        httpx_mock.add_response(url=SEARCH_URL, text=sample_search_html)

        resp = await client.post("/api/rating", json={"beerName": "SoCal", "brewery": "Cloudwater"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["found"] is True
        assert data["rating"] == 3.81
        assert data["ratingCount"] == 1234
        assert data["beerUrl"] == "https://untappd.com/b/cloudwater-brew-co-socal/3456789"
        assert data["source"] == "scrape"
        assert data["fromCache"] is False

        again = await client.post("/api/rating", json={"beerName": "socal ", "brewery": "CLOUDWATER"})
        assert again.json()["fromCache"] is True
        assert len(httpx_mock.get_requests()) == 1

    @pytest.mark.asyncio
    async def test_upstream_failure_is_a_result(self, client, httpx_mock):
        httpx_mock.add_response(url=SEARCH_URL, status_code=429)

        resp = await client.post("/api/rating", json={"beerName": "SoCal", "brewery": "Cloudwater"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["found"] is False
        assert data["error"] == "Scrape error: 429"

    @pytest.mark.asyncio
    async def test_brewery_optional(self, client, httpx_mock, empty_search_html):
        httpx_mock.add_response(url=SEARCH_URL, text=empty_search_html)

        resp = await client.post("/api/rating", json={"beerName": "Mystery Lager"})
        assert resp.status_code == 200
        assert resp.json()["found"] is False
        assert httpx_mock.get_request().url.params["q"] == "Mystery Lager "

    @pytest.mark.asyncio
    async def test_missing_beer_name(self, client):
        resp = await client.post("/api/rating", json={"brewery": "Cloudwater"})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_empty_beer_name(self, client):
        resp = await client.post("/api/rating", json={"beerName": ""})
        assert resp.status_code == 422


class TestCacheEndpoints:
    @pytest.mark.asyncio
    async def test_stats_and_clear(self, client):
        rated = RatingResult(found=True, rating=4.0, rating_count=10, beer_name="Cached", source="scrape")
        await main.rating_cache.set("cloudwater_cached", rated)
        await main.rating_cache.get("cloudwater_cached")
        await main.rating_cache.get("cloudwater_missing")

        stats = (await client.get("/api/cache/stats")).json()
        assert stats == {"cachedCount": 1, "hits": 1, "misses": 1, "hitRate": 50}

        resp = await client.delete("/api/cache")
        assert resp.json() == {"success": True}

        stats = (await client.get("/api/cache/stats")).json()
        assert stats == {"cachedCount": 0, "hits": 0, "misses": 0, "hitRate": 0}


class TestSettingsEndpoints:
    @pytest.mark.asyncio
    async def test_enabled_defaults_true(self, client):
        resp = await client.get("/api/enabled")
        assert resp.json() == {"enabled": True}

    @pytest.mark.asyncio
    async def test_toggle_enabled(self, client):
        resp = await client.put("/api/enabled", json={"enabled": False})
        assert resp.json() == {"success": True}
        assert (await client.get("/api/enabled")).json() == {"enabled": False}

    @pytest.mark.asyncio
    async def test_credentials_switch_source(self, client):
        assert (await client.get("/api/source")).json() == {"source": "scrape"}

        resp = await client.put(
            "/api/credentials", json={"clientId": "abc", "clientSecret": "xyz"},
        )
        assert resp.json() == {"success": True}
        assert (await client.get("/api/source")).json() == {"source": "api"}

        await client.delete("/api/credentials")
        assert (await client.get("/api/source")).json() == {"source": "scrape"}

    @pytest.mark.asyncio
    async def test_incomplete_credentials_rejected(self, client):
        resp = await client.put("/api/credentials", json={"clientId": "abc"})
        assert resp.status_code == 422
        assert (await client.get("/api/source")).json() == {"source": "scrape"}

    @pytest.mark.asyncio
    async def test_credentials_save_failure(self, client, monkeypatch):
        async def broken(credentials):
            raise RuntimeError("disk full")

        monkeypatch.setattr(main.preferences, "save_credentials", broken)
        resp = await client.put(
            "/api/credentials", json={"clientId": "abc", "clientSecret": "xyz"},
        )
        assert resp.status_code == 500
        assert resp.json() == {"error": "Could not save API credentials."}
