"""Pydantic models shared by the resolver, the source clients and the API.

Python attributes are snake_case; the wire format uses the camelCase keys the
browser extension sends and expects (beerName, ratingCount, fromCache, ...).
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

RatingSource = Literal["api", "scrape"]


class WireModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self, **kwargs) -> dict:
        return self.model_dump(by_alias=True, **kwargs)


# ═══════════════ INPUTS ═══════════════

class RatingQuery(WireModel):
    """A single lookup. Brewery is a free-text search hint, not an identifier."""

    model_config = ConfigDict(frozen=True)

    beer_name: str = Field(min_length=1)
    brewery: str = ""


class CredentialPair(WireModel):
    """Untappd API key pair. Its absence selects scraping."""

    client_id: str = Field(min_length=1)
    client_secret: str = Field(min_length=1)


class EnabledFlag(WireModel):
    enabled: bool


# ═══════════════ RESULTS ═══════════════

class RatingResult(WireModel):
    """Outcome of one resolution.

    ``unrated`` means the beer exists at the source but has no ratings yet,
    which is different from ``found=False``.
    """

    found: bool = False
    rating: float | None = None
    rating_count: int | None = None
    beer_name: str | None = None
    beer_url: str | None = None
    source: RatingSource = "scrape"
    unrated: bool = False
    error: str | None = None
    from_cache: bool = False

    @model_validator(mode="after")
    def _check_rating_consistency(self) -> RatingResult:
        if self.unrated and (self.rating is not None or self.rating_count != 0):
            raise ValueError("unrated results must have rating=None and rating_count=0")
        if not self.found and self.rating is not None:
            raise ValueError("results that were not found cannot carry a rating")
        return self

    def to_cache_payload(self) -> dict:
        """Serialized form for storage; ``fromCache`` is never persisted."""
        return self.to_wire(exclude={"from_cache"})


class CacheEntry(WireModel):
    data: RatingResult
    timestamp: int  # epoch millis


class CacheStats(WireModel):
    cached_count: int = 0
    hits: int = 0
    misses: int = 0
    hit_rate: int = 0


class DataSourceInfo(WireModel):
    source: RatingSource


class SuccessResponse(WireModel):
    success: bool = True
