"""Chain detection scans and chain materialization over a ChainStore."""

from __future__ import annotations

from dataclasses import replace

import structlog

from chaindetect.clustering import ChainClusterer, ClusterStats
from chaindetect.config import ChainConfig
from chaindetect.errors import NotFoundError, StorageError, ValidationError
from chaindetect.store import ChainStore
from chaindetect.types import (
    ChainAssignment,
    ChainSummary,
    DetectionResult,
    DetectionSummary,
    Restaurant,
)

log = structlog.get_logger()

MIN_CHAIN_LOCATIONS = 2


class ChainDetectionService:
    """Operator-facing chain operations, composed from the stateless components."""

    def __init__(self, store: ChainStore, config: ChainConfig | None = None) -> None:
        self.store = store
        self.config = config or ChainConfig()
        self.last_stats: ClusterStats | None = None

    def find_potential_chains(
        self,
        similarity_threshold: float | None = None,
        min_locations: int | None = None,
        max_results: int | None = None,
    ) -> DetectionResult:
        """Scan all chain-less restaurants and rank candidate chains."""
        detection = self.config.detection
        overrides = {
            "similarity_threshold": similarity_threshold,
            "min_locations": min_locations,
            "max_results": max_results,
        }
        detection = replace(detection, **{k: v for k, v in overrides.items() if v is not None})

        log.info("chain_scan_start")
        try:
            restaurants = self.store.fetch_unchained_restaurants()
        except StorageError as e:
            log.error("chain_scan_failed", error=str(e))
            raise

        clusterer = ChainClusterer(detection, self.config.confidence)
        chains = clusterer.find_clusters(restaurants)
        self.last_stats = clusterer.stats

        average = (
            sum(c.location_count for c in chains) / len(chains) if chains else 0.0
        )
        log.info("chain_scan_done", restaurants=len(restaurants), potential_chains=len(chains))

        return DetectionResult(
            total_potential_chains=len(chains),
            chains=chains,
            summary=DetectionSummary(
                restaurants_analyzed=len(restaurants),
                average_locations_per_chain=average,
                top_chain=chains[0] if chains else None,
            ),
        )

    def create_chain_from_suggestion(
        self,
        name: str,
        restaurant_ids: list[int],
        website: str | None = None,
        description: str | None = None,
    ) -> ChainAssignment:
        """Create a chain and point every named restaurant at it, atomically.

        Ids that match no restaurant are left out of ``assigned_restaurants``
        without failing the operation.
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Chain name is required")
        if not restaurant_ids or len(restaurant_ids) < MIN_CHAIN_LOCATIONS:
            raise ValidationError(
                f"A chain needs at least {MIN_CHAIN_LOCATIONS} restaurant locations"
            )

        try:
            with self.store.transaction() as tx:
                chain = tx.insert_chain(name, website or None, description or None)
                assigned = tx.assign_restaurants(chain.id, list(restaurant_ids))
        except StorageError as e:
            log.error("create_chain_failed", name=name, error=str(e))
            raise

        log.info(
            "chain_created",
            chain_id=chain.id,
            name=name,
            requested=len(restaurant_ids),
            assigned=len(assigned),
        )
        return ChainAssignment(chain=chain, assigned_restaurants=assigned)

    def remove_restaurant_from_chain(self, restaurant_id: int) -> Restaurant:
        """Clear a restaurant's chain reference. No-op for an unchained restaurant."""
        try:
            with self.store.transaction() as tx:
                restaurant = tx.clear_chain(restaurant_id)
                if restaurant is None:
                    raise NotFoundError(f"Restaurant {restaurant_id} not found")
        except NotFoundError:
            log.warning("restaurant_not_found", restaurant_id=restaurant_id)
            raise
        except StorageError as e:
            log.error("remove_from_chain_failed", restaurant_id=restaurant_id, error=str(e))
            raise

        log.info("restaurant_removed_from_chain", restaurant_id=restaurant_id)
        return restaurant

    def get_all_chains(self) -> list[ChainSummary]:
        """Every chain with its member count and the cities its members occupy."""
        try:
            return self.store.fetch_chain_summaries()
        except StorageError as e:
            log.error("list_chains_failed", error=str(e))
            raise
