"""Confidence scoring for candidate chain clusters."""

from __future__ import annotations

import math

from chaindetect.config import ConfidenceWeights
from chaindetect.types import Restaurant


def score_confidence(
    locations: list[Restaurant], weights: ConfidenceWeights | None = None
) -> int:
    """Rate how likely a group of restaurants is one chain, from 0 to 100.

    Three capped components are summed:

    - location count: ``min(n / location_saturation, 1) * location_count``
    - geographic spread: ``min(cities / city_saturation, 1) * geographic_diversity``
    - name consistency: ``(1 - (distinct_names - 1) / n) * name_consistency``

    Cities and names are taken from the original records, not the
    normalized keys. The sum is rounded half-up and clamped to [0, 100].
    """
    if weights is None:
        weights = ConfidenceWeights()

    count = len(locations)
    if count == 0:
        return 0

    # 1. More locations, more confidence
    location_score = min(count / weights.location_saturation, 1) * weights.location_count

    # 2. Spread across cities
    unique_cities = len({r.city_id for r in locations if r.city_id})
    geo_score = min(unique_cities / weights.city_saturation, 1) * weights.geographic_diversity

    # 3. Literal name agreement
    unique_names = len({r.name for r in locations})
    name_consistency = 1 - (unique_names - 1) / count
    name_score = name_consistency * weights.name_consistency

    total = location_score + geo_score + name_score
    return max(0, min(100, math.floor(total + 0.5)))
