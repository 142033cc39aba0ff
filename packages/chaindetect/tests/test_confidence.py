"""Tests for cluster confidence scoring."""

from chaindetect.config import ConfidenceWeights
from chaindetect.confidence import score_confidence
from chaindetect.types import Restaurant


def _restaurant(rid: int, name: str, city_id: int | None = None) -> Restaurant:
    return Restaurant(id=rid, name=name, city_id=city_id)


def test_empty_cluster_scores_zero():
    assert score_confidence([]) == 0


def test_small_single_city_cluster():
    locations = [_restaurant(1, "Joe's Pizza", 1), _restaurant(2, "Joe's Pizza", 1)]
    # 0.2 * 40 + (1/3) * 30 + 1.0 * 30
    assert score_confidence(locations) == 48


def test_full_marks():
    locations = [_restaurant(i, "Joe's Pizza", i % 3 + 1) for i in range(10)]
    assert score_confidence(locations) == 100


def test_distinct_names_lower_consistency():
    locations = [_restaurant(1, "Joe's Pizza"), _restaurant(2, "Joe's Pizza NYC")]
    # 8 for locations, 0 for cities, (1 - 1/2) * 30 for names
    assert score_confidence(locations) == 23


def test_missing_cities_ignored():
    locations = [_restaurant(1, "Joe's Pizza", None), _restaurant(2, "Joe's Pizza", 0)]
    assert score_confidence(locations) == 38


def test_rounds_half_up():
    locations = [
        _restaurant(1, "Joe's Pizza"),
        _restaurant(2, "Joe's Pizza"),
        _restaurant(3, "Joe's Pizza"),
        _restaurant(4, "Joe's Pizza #2"),
    ]
    # 16 + 0 + 22.5 = 38.5
    assert score_confidence(locations) == 39


def test_custom_weights():
    weights = ConfidenceWeights(location_count=60, geographic_diversity=20, name_consistency=20)
    locations = [_restaurant(1, "Joe's Pizza", 1), _restaurant(2, "Joe's Pizza", 1)]
    # 12 + 6.67 + 20
    assert score_confidence(locations, weights) == 39


def test_custom_saturation():
    weights = ConfidenceWeights(location_saturation=2, city_saturation=1)
    locations = [_restaurant(1, "Joe's Pizza", 1), _restaurant(2, "Joe's Pizza", 1)]
    assert score_confidence(locations, weights) == 100


def test_clamped_to_valid_range():
    weights = ConfidenceWeights(location_count=200, geographic_diversity=200, name_consistency=200)
    locations = [_restaurant(i, "Joe's Pizza", i) for i in range(10)]
    score = score_confidence(locations, weights)
    assert isinstance(score, int)
    assert score == 100
