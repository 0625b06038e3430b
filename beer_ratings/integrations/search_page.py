"""Untappd search-results page extraction.

Best-effort: the markup is not a stable contract, so every field is read by
an ordered list of small rules and the first rule that yields a value wins.

Flow:
  1. Find the first beer-item block on the page
  2. Read rating / rating count / detail URL / display name from the block
  3. Apply the zero-count policy (a "(0)" count means unrated, whatever the score says)
  4. Without a block, scan the whole document with the same patterns
"""

import logging
import re
from typing import Any, Callable
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from beer_ratings.config import settings

logger = logging.getLogger(__name__)

# One digit 0-4, a dot, one or two fraction digits: "3.8", "4.12"
RATING_PATTERN = re.compile(r"(?<![\d.])([0-4]\.\d{1,2})(?![\d])")
RATING_EXACT = re.compile(r"^\(?([0-4]\.\d{1,2})\)?$")
# Scores shown with a third decimal, "(3.812)", are not dot-grouped counts
SCORE_LIKE = re.compile(r"[0-4]\.\d{1,3}")
MAX_RATING = 5.0

# Digit runs with optional "." or "," thousands groups: "0", "987", "1,234", "1.234.567"
_COUNT = r"\d{1,3}(?:[.,]\d{3})+(?!\d)|\d+"
COUNT_PATTERN = re.compile(rf"\(?({_COUNT})")
PARENTHESIZED_COUNT_PATTERN = re.compile(rf"\(({_COUNT})\)")
LABELLED_COUNT_PATTERN = re.compile(rf"({_COUNT})\s*Ratings?", re.IGNORECASE)
RATING_SCORE_MARKER = re.compile(r"rating_score[^>]*>\s*([0-4]\.\d{1,2})", re.IGNORECASE)

BLOCK_SELECTORS = (
    ".beer-item",
    ".results-container .beer-result",
    '[class*="beer-item"]',
    ".results-list-container .beer-details",
    ".beer-details",
    ".result-item",
)

Rule = Callable[[Tag], Any]


# ═══════════════ PARSING HELPERS ═══════════════

def parse_count(text: str) -> int:
    """'1.234' and '1,234' are both 1234: strip every separator, not just the matched one."""
    return int(text.replace(".", "").replace(",", ""))


def _parse_rating(text: str) -> float | None:
    match = RATING_PATTERN.search(text)
    return float(match.group(1)) if match else None


def _text(node: Tag | None) -> str:
    return node.get_text(" ", strip=True) if node is not None else ""


# ═══════════════ RATING RULES ═══════════════

def _rating_from_caps_attribute(root: Tag) -> float | None:
    caps = root.select_one(".caps[data-rating]")
    if caps is None:
        return None
    try:
        value = float(caps["data-rating"])
    except ValueError:
        return None
    # data-rating carries full precision ("3.812")
    return round(value, 2) if 0 <= value <= MAX_RATING else None


def _rating_from_num_class(root: Tag) -> float | None:
    return _parse_rating(_text(root.select_one('[class*="num"]')))


def _rating_from_rating_class(root: Tag) -> float | None:
    for node in root.select('[class*="rating"]'):
        rating = _parse_rating(_text(node))
        if rating is not None:
            return rating
    return None


def _rating_from_bare_text(root: Tag) -> float | None:
    for string in root.find_all(string=True):
        match = RATING_EXACT.match(string.strip())
        if match:
            return float(match.group(1))
    return None


def _rating_from_caps_text(root: Tag) -> float | None:
    for node in root.select('[class*="caps"]'):
        rating = _parse_rating(_text(node))
        if rating is not None:
            return rating
    return None


def _rating_from_score_marker(root: Tag) -> float | None:
    match = RATING_SCORE_MARKER.search(str(root))
    return float(match.group(1)) if match else None


BLOCK_RATING_RULES: tuple[Rule, ...] = (
    _rating_from_caps_attribute,
    _rating_from_num_class,
    _rating_from_rating_class,
    _rating_from_bare_text,
)

DOCUMENT_RATING_RULES: tuple[Rule, ...] = (
    _rating_from_caps_attribute,
    _rating_from_caps_text,
    _rating_from_rating_class,
    _rating_from_score_marker,
)


# ═══════════════ COUNT RULES ═══════════════

def _count_from_raters_class(root: Tag) -> int | None:
    node = root.select_one('[class*="raters"]')
    match = COUNT_PATTERN.search(_text(node))
    return parse_count(match.group(1)) if match else None


def _count_in_parentheses(root: Tag) -> int | None:
    for match in PARENTHESIZED_COUNT_PATTERN.finditer(_text(root)):
        if not SCORE_LIKE.fullmatch(match.group(1)):
            return parse_count(match.group(1))
    return None


def _count_before_ratings_label(root: Tag) -> int | None:
    match = LABELLED_COUNT_PATTERN.search(_text(root))
    return parse_count(match.group(1)) if match else None


BLOCK_COUNT_RULES: tuple[Rule, ...] = (
    _count_from_raters_class,
    _count_in_parentheses,
    _count_before_ratings_label,
)

DOCUMENT_COUNT_RULES: tuple[Rule, ...] = (_count_in_parentheses,)


# ═══════════════ URL / NAME RULES ═══════════════

def _detail_url(root: Tag) -> str | None:
    link = root.select_one('a[href*="/b/"]')
    if link is None:
        return None
    return urljoin(settings.untappd_base_url, str(link["href"]))


def _name_from_name_class(root: Tag) -> str | None:
    return _text(root.select_one('[class*="name"]')) or None


def _name_from_detail_link(root: Tag) -> str | None:
    return _text(root.select_one('a[href*="/b/"]')) or None


NAME_RULES: tuple[Rule, ...] = (
    _name_from_name_class,
    _name_from_detail_link,
)


def first_match(rules: tuple[Rule, ...], root: Tag) -> Any:
    """Run rules in order and return the first non-None value."""
    for rule in rules:
        value = rule(root)
        if value is not None:
            return value
    return None


# ═══════════════ POLICY ═══════════════

def apply_zero_count_policy(
    rating: float | None,
    rating_count: int | None,
    beer_name: str,
    beer_url: str | None,
) -> dict[str, Any]:
    """Turn extracted values into result fields.

    An explicit count of 0 wins over any rating number: unrated beers still
    show a placeholder score on the results page.
    """
    if rating_count == 0:
        return {
            "found": True,
            "unrated": True,
            "rating": None,
            "rating_count": 0,
            "beer_name": beer_name,
            "beer_url": beer_url,
        }
    if rating is not None:
        return {
            "found": True,
            "rating": rating,
            "rating_count": rating_count,
            "beer_name": beer_name,
            "beer_url": beer_url,
        }
    return {"found": False}


# ═══════════════ ENTRY POINT ═══════════════

def find_beer_block(soup: BeautifulSoup) -> Tag | None:
    for selector in BLOCK_SELECTORS:
        block = soup.select_one(selector)
        if block is not None:
            return block
    return None


def parse_search_results(html: str, original_beer_name: str) -> dict[str, Any]:
    """Extract rating fields from a search-results page. Never raises."""
    try:
        soup = BeautifulSoup(html, "html.parser")
        block = find_beer_block(soup)

        if block is not None:
            result = apply_zero_count_policy(
                rating=first_match(BLOCK_RATING_RULES, block),
                rating_count=first_match(BLOCK_COUNT_RULES, block),
                beer_name=first_match(NAME_RULES, block) or original_beer_name,
                beer_url=_detail_url(block),
            )
            if result["found"]:
                return result
            logger.debug("Beer-item block had no rating — scanning whole document")
        else:
            logger.debug("No beer-item block found — scanning whole document")

        return apply_zero_count_policy(
            rating=first_match(DOCUMENT_RATING_RULES, soup),
            rating_count=first_match(DOCUMENT_COUNT_RULES, soup),
            beer_name=original_beer_name,
            beer_url=_detail_url(soup),
        )

    except Exception as e:
        logger.error("Search page parse error: %s", str(e)[:200])
        return {"found": False, "error": str(e)}
