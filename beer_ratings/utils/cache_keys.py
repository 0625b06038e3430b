"""Deterministic cache keys for (brewery, beer name) lookups."""

import re

_WHITESPACE = re.compile(r"\s+")


def normalize(value: str) -> str:
    """Lower-case, trim, and join whitespace runs with a single underscore."""
    return _WHITESPACE.sub("_", value.lower().strip())


def cache_key(brewery: str, beer_name: str) -> str:
    """Build the cache key shared by every query that normalizes identically.

    >>> cache_key("Cloudwater", "  SoCal   IPA ")
    'cloudwater_socal_ipa'
    """
    return f"{normalize(brewery)}_{normalize(beer_name)}"
