"""Storage protocol for chain detection, plus an in-memory implementation."""

from __future__ import annotations

import copy
from contextlib import AbstractContextManager, contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Iterator, Protocol

import structlog

from chaindetect.errors import ChainDetectionError, StorageError
from chaindetect.types import Chain, ChainSummary, Restaurant

log = structlog.get_logger()


class ChainTransaction(Protocol):
    """Write primitives available inside a single store transaction."""

    def insert_chain(
        self, name: str, website: str | None, description: str | None
    ) -> Chain: ...

    def assign_restaurants(self, chain_id: int, restaurant_ids: list[int]) -> list[Restaurant]: ...

    def clear_chain(self, restaurant_id: int) -> Restaurant | None: ...


class ChainStore(Protocol):
    """Protocol for restaurant/chain storage (e.g. Postgres)."""

    def fetch_unchained_restaurants(self) -> list[Restaurant]: ...

    def fetch_chain_summaries(self) -> list[ChainSummary]: ...

    def transaction(self) -> AbstractContextManager[ChainTransaction]:
        """Context manager: commit on clean exit, roll back on any exception."""
        ...


class _MemoryTransaction:
    def __init__(self, store: InMemoryChainStore) -> None:
        self.store = store

    def insert_chain(
        self, name: str, website: str | None, description: str | None
    ) -> Chain:
        if any(c.name == name for c in self.store.chains.values()):
            raise StorageError(f"Chain name already exists: {name}")
        now = datetime.now(timezone.utc)
        chain = Chain(
            id=self.store._next_chain_id,
            name=name,
            website=website,
            description=description,
            created_at=now,
            updated_at=now,
        )
        self.store._next_chain_id += 1
        self.store.chains[chain.id] = chain
        return chain

    def assign_restaurants(self, chain_id: int, restaurant_ids: list[int]) -> list[Restaurant]:
        if chain_id not in self.store.chains:
            raise StorageError(f"Chain {chain_id} does not exist")
        updated: list[Restaurant] = []
        for rid in dict.fromkeys(restaurant_ids):
            restaurant = self.store.restaurants.get(rid)
            if restaurant is None:
                continue
            restaurant.chain_id = chain_id
            updated.append(replace(restaurant))
        return updated

    def clear_chain(self, restaurant_id: int) -> Restaurant | None:
        restaurant = self.store.restaurants.get(restaurant_id)
        if restaurant is None:
            return None
        restaurant.chain_id = None
        return replace(restaurant)


class InMemoryChainStore:
    """Dict-backed store used for offline scans of exported data and in tests.

    Transactions snapshot every table up front and restore the snapshot on
    failure, so a half-applied write is never visible.
    """

    def __init__(
        self,
        restaurants: list[Restaurant] | None = None,
        chains: list[Chain] | None = None,
        city_names: dict[int, str] | None = None,
    ) -> None:
        self.restaurants: dict[int, Restaurant] = {r.id: r for r in restaurants or []}
        self.chains: dict[int, Chain] = {c.id: c for c in chains or []}
        self.city_names: dict[int, str] = dict(city_names or {})
        self._next_chain_id = max(self.chains, default=0) + 1

    def fetch_unchained_restaurants(self) -> list[Restaurant]:
        unchained = [replace(r) for r in self.restaurants.values() if r.chain_id is None]
        # same order as Postgres ORDER BY name: NULL names last
        unchained.sort(key=lambda r: (r.name is None, r.name or ""))
        return unchained

    def fetch_chain_summaries(self) -> list[ChainSummary]:
        summaries: list[ChainSummary] = []
        for chain in self.chains.values():
            members = [r for r in self.restaurants.values() if r.chain_id == chain.id]
            cities: list[Any] = []
            for r in members:
                if r.city_id is None:
                    continue
                city = self.city_names.get(r.city_id, r.city_id)
                if city not in cities:
                    cities.append(city)
            summaries.append(ChainSummary(chain=replace(chain), location_count=len(members), cities=cities))
        summaries.sort(key=lambda s: (-s.location_count, s.chain.name))
        return summaries

    @contextmanager
    def transaction(self) -> Iterator[_MemoryTransaction]:
        snapshot = (
            copy.deepcopy(self.restaurants),
            copy.deepcopy(self.chains),
            self._next_chain_id,
        )
        try:
            yield _MemoryTransaction(self)
        except Exception as e:
            self.restaurants, self.chains, self._next_chain_id = snapshot
            log.warning("memory_transaction_rolled_back", error=str(e))
            if isinstance(e, ChainDetectionError):
                raise
            raise StorageError(f"Transaction failed: {e}") from e
