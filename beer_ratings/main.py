"""Beer Ratings backend — FastAPI application entry point.

Serves the browser extension: rating lookups plus the cache, data-source and
settings actions its popup uses.
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from beer_ratings.config import settings
from beer_ratings.integrations.untappd_api import UntappdApiClient
from beer_ratings.integrations.untappd_scrape import UntappdScrapeClient
from beer_ratings.orchestrator.resolver import RatingResolver
from beer_ratings.orchestrator.schemas import (
    CredentialPair,
    DataSourceInfo,
    EnabledFlag,
    RatingQuery,
    SuccessResponse,
)
from beer_ratings.services.cache import RatingCache
from beer_ratings.services.kv_store import KeyValueStore
from beer_ratings.services.preferences import PreferenceStore
from beer_ratings.services.rate_limiter import RequestQueue

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger("beer_ratings")


# ═══════════════ SERVICES ═══════════════

kv_store = KeyValueStore()
preferences = PreferenceStore(kv_store)
rating_cache = RatingCache(kv_store)
request_queue = RequestQueue(settings.rate_limit_requests, settings.rate_limit_window_seconds)
scrape_client = UntappdScrapeClient()
api_client = UntappdApiClient(preferences, fallback=scrape_client)
resolver = RatingResolver(rating_cache, request_queue, [api_client, scrape_client])


# ═══════════════ LIFESPAN ═══════════════

@asynccontextmanager
async def lifespan(app: FastAPI):
    redis_ok = await kv_store.connect()
    logger.info("Redis: %s", "connected" if redis_ok else "unavailable (using in-memory fallback)")

    if settings.has_seed_credentials and await preferences.get_credentials() is None:
        await preferences.save_credentials(CredentialPair(
            client_id=settings.untappd_client_id,
            client_secret=settings.untappd_client_secret,
        ))

    logger.info("Beer Ratings backend starting | source=%s", await preferences.data_source())

    yield

    await kv_store.disconnect()
    logger.info("Beer Ratings backend shutting down")


# ═══════════════ APP ═══════════════

app = FastAPI(
    title="Beer Ratings API",
    description="Untappd rating lookups with caching and a shared request budget",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
)


def _error(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": message})


# ═══════════════ ENDPOINTS ═══════════════

@app.get("/health")
async def health():
    return {
        "status": "ok",
        "source": await preferences.data_source(),
        "pending": request_queue.pending,
        "redis": kv_store.redis_available,
    }


@app.post("/api/rating")
async def get_rating(query: RatingQuery):
    """Resolve one beer. Always answers with a rating result, even on failure."""
    start = time.monotonic()
    result = await resolver.resolve(query.beer_name, query.brewery)
    elapsed_ms = int((time.monotonic() - start) * 1000)
    logger.info(
        "Rating resolved | beer=%s | found=%s | cached=%s | %dms",
        query.beer_name[:80], result.found, result.from_cache, elapsed_ms,
    )
    return JSONResponse(content=result.to_wire())


@app.get("/api/cache/stats")
async def cache_stats():
    stats = await rating_cache.stats()
    return JSONResponse(content=stats.to_wire())


@app.delete("/api/cache")
async def clear_cache():
    await rating_cache.clear()
    return JSONResponse(content=SuccessResponse().to_wire())


@app.get("/api/source")
async def data_source():
    info = DataSourceInfo(source=await preferences.data_source())
    return JSONResponse(content=info.to_wire())


@app.get("/api/enabled")
async def get_enabled():
    return JSONResponse(content=EnabledFlag(enabled=await preferences.is_enabled()).to_wire())


@app.put("/api/enabled")
async def set_enabled(flag: EnabledFlag):
    try:
        await preferences.set_enabled(flag.enabled)
    except Exception:
        return _error("Could not save setting.")
    return JSONResponse(content=SuccessResponse().to_wire())


@app.put("/api/credentials")
async def save_credentials(credentials: CredentialPair):
    try:
        await preferences.save_credentials(credentials)
    except Exception:
        return _error("Could not save API credentials.")
    return JSONResponse(content=SuccessResponse().to_wire())


@app.delete("/api/credentials")
async def clear_credentials():
    await preferences.clear_credentials()
    return JSONResponse(content=SuccessResponse().to_wire())
