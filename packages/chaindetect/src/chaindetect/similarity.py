"""Edit-distance similarity between normalized restaurant names."""

from __future__ import annotations

import numpy as np
from rapidfuzz import process
from rapidfuzz.distance import Levenshtein


def _ratio(a_len: int, b_len: int, distance: int) -> float:
    max_len = max(a_len, b_len)
    if max_len == 0:
        return 1.0
    return (max_len - distance) / max_len


def similarity_ratio(a: str | None, b: str | None) -> float:
    """Return ``(max_len - levenshtein(a, b)) / max_len`` in [0, 1].

    Insertions, deletions and substitutions all cost 1. Two empty strings are
    identical (1.0); a missing value on either side never matches (0.0).
    """
    if a is None or b is None:
        return 0.0
    return _ratio(len(a), len(b), Levenshtein.distance(a, b))


def similarity_row(seed: str, candidates: list[str], workers: int = 1) -> list[float]:
    """Score one seed key against many keys at once.

    Gives the same values as calling :func:`similarity_ratio` per pair.
    ``workers`` is handed to rapidfuzz, which splits the distance row across
    native threads.
    """
    if not candidates:
        return []
    # Integer distances keep the ratio exact at the threshold boundary
    distances = process.cdist(
        [seed],
        candidates,
        scorer=Levenshtein.distance,
        dtype=np.int32,
        workers=workers,
    )[0]
    return [
        _ratio(len(seed), len(candidate), int(distance))
        for candidate, distance in zip(candidates, distances)
    ]
