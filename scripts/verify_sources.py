#!/usr/bin/env python3
"""Live source verification script — run with network access.

Usage:
  1. Optionally fill in UNTAPPD_CLIENT_ID / UNTAPPD_CLIENT_SECRET in .env
  2. Run: python scripts/verify_sources.py ["Beer Name"] ["Brewery"]

Steps:
  Step 1: Show configuration
  Step 2: Scrape the Untappd search page
  Step 3: Query the Untappd API (needs credentials)
  Step 4: Full resolver run twice (second lookup must come from cache)
"""

import asyncio
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

DEFAULT_BEER = "SoCal"
DEFAULT_BREWERY = "Cloudwater"


def step_header(n: int, title: str) -> None:
    print(f"\n{'='*60}")
    print(f"  Step {n}: {title}")
    print(f"{'='*60}\n")


def ok(msg: str) -> None:
    print(f"  ✅ {msg}")


def fail(msg: str) -> None:
    print(f"  ❌ {msg}")


def info(msg: str) -> None:
    print(f"  ℹ️  {msg}")


def show(result) -> None:
    if result.unrated:
        print(f"    - {result.beer_name}: unrated ({result.beer_url})")
    else:
        print(f"    - {result.beer_name}: {result.rating} from {result.rating_count} ratings ({result.beer_url})")


async def step1_show_config():
    step_header(1, "Configuration")
    from beer_ratings.config import settings

    ok(f"Search URL: {settings.untappd_search_url}")
    ok(f"API base URL: {settings.untappd_api_base_url}")
    ok(f"Budget: {settings.rate_limit_requests} requests / {settings.rate_limit_window_seconds:.0f}s")
    if settings.has_seed_credentials:
        ok(f"UNTAPPD_CLIENT_ID: set ({settings.untappd_client_id[:6]}...)")
    else:
        info("UNTAPPD_CLIENT_ID / UNTAPPD_CLIENT_SECRET: not set (scraping only)")
    return True


async def step2_scrape(beer: str, brewery: str):
    step_header(2, "Untappd search page (scrape)")
    from beer_ratings.integrations.untappd_scrape import UntappdScrapeClient

    info(f"Searching: '{beer} {brewery}'")
    result = await UntappdScrapeClient().fetch(beer, brewery)

    if result.error:
        fail(f"Scrape failed: {result.error}")
        return False
    if not result.found:
        fail("Page fetched but no rating found — markup may have changed")
        return False
    ok("Rating extracted")
    show(result)
    return True


async def step3_api(beer: str, brewery: str):
    step_header(3, "Untappd API")
    from beer_ratings.config import settings
    from beer_ratings.integrations.untappd_api import UntappdApiClient
    from beer_ratings.orchestrator.schemas import CredentialPair
    from beer_ratings.services.kv_store import KeyValueStore
    from beer_ratings.services.preferences import PreferenceStore

    if not settings.has_seed_credentials:
        info("No credentials — skipping")
        return True

    preferences = PreferenceStore(KeyValueStore())
    await preferences.save_credentials(CredentialPair(
        client_id=settings.untappd_client_id,
        client_secret=settings.untappd_client_secret,
    ))
    result = await UntappdApiClient(preferences).attempt(beer, brewery)

    if result is None:
        still_valid = await preferences.get_credentials() is not None
        fail("API call failed" + ("" if still_valid else " — credentials were rejected (401)"))
        return False
    if not result.found:
        fail("API answered but returned no beers")
        return False
    ok("API result")
    show(result)
    return True


async def step4_resolver(beer: str, brewery: str):
    step_header(4, "Resolver (cache + request queue)")
    from beer_ratings.integrations.untappd_api import UntappdApiClient
    from beer_ratings.integrations.untappd_scrape import UntappdScrapeClient
    from beer_ratings.orchestrator.resolver import RatingResolver
    from beer_ratings.services.cache import RatingCache
    from beer_ratings.services.kv_store import KeyValueStore
    from beer_ratings.services.preferences import PreferenceStore
    from beer_ratings.services.rate_limiter import RequestQueue

    store = KeyValueStore()
    scrape = UntappdScrapeClient()
    resolver = RatingResolver(
        RatingCache(store),
        RequestQueue(),
        [UntappdApiClient(PreferenceStore(store), fallback=scrape), scrape],
    )

    first = await resolver.resolve(beer, brewery)
    second = await resolver.resolve(beer.upper(), f"  {brewery}  ")

    if first.error:
        fail(f"First lookup failed: {first.error}")
        return False
    ok(f"First lookup: source={first.source} found={first.found}")
    if not second.from_cache:
        fail("Second lookup was not served from cache")
        return False
    ok("Second lookup served from cache")
    return True


async def main():
    beer = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_BEER
    brewery = sys.argv[2] if len(sys.argv) > 2 else DEFAULT_BREWERY

    print("\n🍺 Beer Ratings Backend — Live Source Verification")
    print("=" * 60)

    results = {
        1: await step1_show_config(),
        2: await step2_scrape(beer, brewery),
        3: await step3_api(beer, brewery),
        4: await step4_resolver(beer, brewery),
    }

    # Summary
    print(f"\n{'='*60}")
    print("  SUMMARY")
    print(f"{'='*60}")
    for step_n, passed in sorted(results.items()):
        status = "✅ PASS" if passed else "❌ FAIL"
        print(f"  Step {step_n}: {status}")

    total_passed = sum(1 for v in results.values() if v)
    total = len(results)
    print(f"\n  {total_passed}/{total} steps passed")
    print(f"{'='*60}\n")

    sys.exit(0 if all(results.values()) else 1)


if __name__ == "__main__":
    asyncio.run(main())
