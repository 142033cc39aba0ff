"""Core types for restaurant chain detection."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class Restaurant:
    id: int
    name: str | None
    address: str | None = None
    city_id: int | None = None
    neighborhood_id: int | None = None
    latitude: float | None = None
    longitude: float | None = None
    chain_id: int | None = None
    created_at: datetime | None = None


@dataclass
class Chain:
    id: int
    name: str
    website: str | None = None
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class CandidateCluster:
    """A suspected chain found by a scan. Never persisted."""

    suggested_name: str
    normalized_name: str
    locations: list[Restaurant]
    location_count: int
    confidence: int
    cities: list[int] = field(default_factory=list)
    average_similarity: float = 1.0

    @property
    def restaurant_ids(self) -> list[int]:
        return [r.id for r in self.locations]


@dataclass
class DetectionSummary:
    restaurants_analyzed: int
    average_locations_per_chain: float
    top_chain: CandidateCluster | None = None


@dataclass
class DetectionResult:
    total_potential_chains: int
    chains: list[CandidateCluster]
    summary: DetectionSummary


@dataclass
class ChainAssignment:
    chain: Chain
    assigned_restaurants: list[Restaurant]


@dataclass
class ChainSummary:
    chain: Chain
    location_count: int
    cities: list[Any] = field(default_factory=list)
