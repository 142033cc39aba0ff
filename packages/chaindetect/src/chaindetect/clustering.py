"""Greedy grouping of restaurants into candidate chains."""

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations

import structlog

from chaindetect.config import ConfidenceWeights, DetectionConfig
from chaindetect.confidence import score_confidence
from chaindetect.normalize import normalize_name
from chaindetect.similarity import similarity_ratio, similarity_row
from chaindetect.types import CandidateCluster, Restaurant

log = structlog.get_logger()


@dataclass
class ClusterStats:
    """Statistics collected during a scan."""

    restaurants_analyzed: int = 0
    empty_keys: int = 0
    comparisons: int = 0
    clusters_emitted: int = 0
    clusters_discarded: int = 0


class ChainClusterer:
    """Single-pass greedy clustering of restaurants by normalized name.

    Restaurants are visited in input order. Each unplaced restaurant seeds a
    cluster and pulls in every *later* unplaced restaurant whose key is at
    least ``similarity_threshold`` similar to the seed's key. Membership is
    single-link to the seed only: two members are never compared to each
    other, so A~B and A~C does not require B~C. Results therefore depend on
    input order. This favors recall; operators review every cluster before
    anything is written.
    """

    def __init__(
        self,
        config: DetectionConfig | None = None,
        weights: ConfidenceWeights | None = None,
    ) -> None:
        self.config = config or DetectionConfig()
        self.weights = weights or ConfidenceWeights()
        self.stats = ClusterStats()

    def find_clusters(self, restaurants: list[Restaurant]) -> list[CandidateCluster]:
        """Group restaurants into clusters sorted by confidence, highest first."""
        cfg = self.config
        self.stats = ClusterStats(restaurants_analyzed=len(restaurants))
        log.info(
            "clustering_start",
            count=len(restaurants),
            similarity_threshold=cfg.similarity_threshold,
            min_locations=cfg.min_locations,
        )

        keys = [normalize_name(r.name) for r in restaurants]
        self.stats.empty_keys = sum(1 for k in keys if not k)

        # keyed by restaurant id so a repeated id is placed at most once
        processed: set[int] = set()
        clusters: list[CandidateCluster] = []

        for i, seed in enumerate(restaurants):
            if seed.id in processed:
                continue
            seed_key = keys[i]
            if not seed_key:
                continue

            processed.add(seed.id)
            later = [
                j for j in range(i + 1, len(restaurants))
                if restaurants[j].id not in processed and keys[j]
            ]
            scores = similarity_row(
                seed_key, [keys[j] for j in later], workers=cfg.workers
            )
            self.stats.comparisons += len(later)

            members = [i]
            for j, score in zip(later, scores):
                if score >= cfg.similarity_threshold and restaurants[j].id not in processed:
                    members.append(j)
                    processed.add(restaurants[j].id)

            if len(members) < cfg.min_locations:
                if len(members) > 1:
                    self.stats.clusters_discarded += 1
                continue

            clusters.append(self._build_cluster(restaurants, keys, members))

        # sort is stable: equal confidence keeps seed order
        clusters.sort(key=lambda c: c.confidence, reverse=True)
        clusters = clusters[: cfg.max_results]
        self.stats.clusters_emitted = len(clusters)

        log.info(
            "clustering_done",
            clusters=len(clusters),
            discarded=self.stats.clusters_discarded,
            comparisons=self.stats.comparisons,
            empty_keys=self.stats.empty_keys,
        )
        return clusters

    def _build_cluster(
        self, restaurants: list[Restaurant], keys: list[str], members: list[int]
    ) -> CandidateCluster:
        locations = [restaurants[m] for m in members]
        member_keys = [keys[m] for m in members]

        pairs = list(combinations(member_keys, 2))
        if pairs:
            average = sum(similarity_ratio(a, b) for a, b in pairs) / len(pairs)
        else:
            average = 1.0

        cities: list[int] = []
        for r in locations:
            if r.city_id and r.city_id not in cities:
                cities.append(r.city_id)

        seed = locations[0]
        cluster = CandidateCluster(
            suggested_name=seed.name,
            normalized_name=member_keys[0],
            locations=locations,
            location_count=len(locations),
            confidence=score_confidence(locations, self.weights),
            cities=cities,
            average_similarity=round(average, 2),
        )
        log.debug(
            "cluster_found",
            suggested_name=cluster.suggested_name,
            normalized_name=cluster.normalized_name,
            location_count=cluster.location_count,
            confidence=cluster.confidence,
        )
        return cluster
