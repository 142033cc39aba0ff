"""Restaurant name normalization for chain comparison."""

from __future__ import annotations

import re

LOCATION_QUALIFIERS = [
    "nyc",
    "new york",
    "manhattan",
    "brooklyn",
    "queens",
    "bronx",
    "staten island",
]

VENUE_SUFFIXES = [
    "restaurant",
    "rest",
    "cafe",
    "bar",
    "grill",
    "kitchen",
    "eatery",
    "diner",
    "bistro",
]

ARTICLES = ["the", "a", "an"]


def _alternation(words: list[str]) -> str:
    return "|".join(re.escape(w) for w in words)


_LOCATION_RE = re.compile(rf"\s+(?:{_alternation(LOCATION_QUALIFIERS)})$", re.IGNORECASE)
_SUFFIX_RE = re.compile(rf"\s+(?:{_alternation(VENUE_SUFFIXES)})$", re.IGNORECASE)
_BRANCH_RE = re.compile(r"\s+(?:location|branch|#\d+|\d+)$", re.IGNORECASE)
_ARTICLE_RE = re.compile(rf"^(?:{_alternation(ARTICLES)})\s+", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")


def _normalize_once(s: str) -> str:
    # 1. Trailing borough/city qualifier ("Joe's Pizza NYC")
    s = _LOCATION_RE.sub("", s)

    # 2. Trailing venue type ("Joe's Pizza Restaurant")
    s = _SUFFIX_RE.sub("", s)

    # 3. Trailing branch marker ("Joe's Pizza #2", "Joe's Pizza 3")
    s = _BRANCH_RE.sub("", s)

    # 4. Leading article ("The Halal Guys")
    s = _ARTICLE_RE.sub("", s)

    # 5. Collapse whitespace
    return _WHITESPACE_RE.sub(" ", s).strip()


def normalize_name(name: str | None) -> str:
    """Normalize a restaurant name into its comparison key.

    Returns "" for None or blank input. Each step removes at most one token,
    so the pipeline is repeated until the key stops changing; this keeps
    ``normalize_name(normalize_name(s)) == normalize_name(s)`` for names like
    "Joe's Bar Restaurant" that carry several strippable tokens.
    """
    if not name:
        return ""

    s = name.lower().strip()
    while True:
        stripped = _normalize_once(s)
        if stripped == s:
            return s
        s = stripped
