"""Postgres-backed chain store."""

from __future__ import annotations

from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Iterator

import psycopg2
import structlog
from psycopg2 import extras, pool

from chaindetect.config import DatabaseConfig
from chaindetect.errors import StorageError
from chaindetect.types import Chain, ChainSummary, Restaurant

log = structlog.get_logger()

_RESTAURANT_COLUMNS = (
    "id, name, address, city_id, neighborhood_id, latitude, longitude, chain_id, created_at"
)

_FETCH_UNCHAINED = f"""
SELECT {_RESTAURANT_COLUMNS}
FROM restaurants
WHERE chain_id IS NULL
ORDER BY name
"""

_INSERT_CHAIN = """
INSERT INTO restaurant_chains (name, website, description, created_at, updated_at)
VALUES (%(name)s, %(website)s, %(description)s, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
RETURNING id, name, website, description, created_at, updated_at
"""

_ASSIGN_RESTAURANTS = f"""
UPDATE restaurants
SET chain_id = %(chain_id)s, updated_at = CURRENT_TIMESTAMP
WHERE id = ANY(%(restaurant_ids)s)
RETURNING {_RESTAURANT_COLUMNS}
"""

_CLEAR_CHAIN = f"""
UPDATE restaurants
SET chain_id = NULL, updated_at = CURRENT_TIMESTAMP
WHERE id = %(restaurant_id)s
RETURNING {_RESTAURANT_COLUMNS}
"""

_FETCH_CHAIN_SUMMARIES = """
SELECT
    c.id, c.name, c.website, c.description, c.created_at, c.updated_at,
    COUNT(r.id) AS location_count,
    COALESCE(
        ARRAY_AGG(DISTINCT ci.name) FILTER (WHERE ci.name IS NOT NULL),
        '{}'
    ) AS cities
FROM restaurant_chains c
LEFT JOIN restaurants r ON r.chain_id = c.id
LEFT JOIN cities ci ON ci.id = r.city_id
GROUP BY c.id, c.name, c.website, c.description, c.created_at, c.updated_at
ORDER BY location_count DESC, c.name
"""


def _to_float(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return float(value)
    return value


def _restaurant_from_row(row: dict[str, Any]) -> Restaurant:
    return Restaurant(
        id=row["id"],
        name=row["name"],
        address=row.get("address"),
        city_id=row.get("city_id"),
        neighborhood_id=row.get("neighborhood_id"),
        latitude=_to_float(row.get("latitude")),
        longitude=_to_float(row.get("longitude")),
        chain_id=row.get("chain_id"),
        created_at=row.get("created_at"),
    )


def _chain_from_row(row: dict[str, Any]) -> Chain:
    return Chain(
        id=row["id"],
        name=row["name"],
        website=row.get("website"),
        description=row.get("description"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class _PostgresTransaction:
    def __init__(self, cursor: Any) -> None:
        self.cursor = cursor

    def insert_chain(
        self, name: str, website: str | None, description: str | None
    ) -> Chain:
        self.cursor.execute(
            _INSERT_CHAIN,
            {"name": name, "website": website, "description": description},
        )
        return _chain_from_row(self.cursor.fetchone())

    def assign_restaurants(self, chain_id: int, restaurant_ids: list[int]) -> list[Restaurant]:
        self.cursor.execute(
            _ASSIGN_RESTAURANTS,
            {"chain_id": chain_id, "restaurant_ids": list(restaurant_ids)},
        )
        return [_restaurant_from_row(row) for row in self.cursor.fetchall()]

    def clear_chain(self, restaurant_id: int) -> Restaurant | None:
        self.cursor.execute(_CLEAR_CHAIN, {"restaurant_id": restaurant_id})
        row = self.cursor.fetchone()
        return _restaurant_from_row(row) if row else None


class PostgresChainStore:
    """Chain store over the ``restaurants``/``restaurant_chains`` tables."""

    def __init__(
        self,
        config: DatabaseConfig,
        connection_pool: pool.AbstractConnectionPool | None = None,
    ) -> None:
        self.config = config
        self._pool = connection_pool

    def _get_pool(self) -> pool.AbstractConnectionPool:
        if self._pool is None:
            if not self.config.url:
                raise StorageError("DATABASE_URL is required for database connections")
            try:
                self._pool = pool.SimpleConnectionPool(
                    self.config.min_connections,
                    self.config.max_connections,
                    dsn=self.config.url,
                    connect_timeout=self.config.connect_timeout,
                )
            except psycopg2.Error as e:
                log.error("database_connect_failed", error=str(e))
                raise StorageError(f"Could not connect to database: {e}") from e
            log.info("database_pool_initialised", max_connections=self.config.max_connections)
        return self._pool

    @contextmanager
    def _connection(self) -> Iterator[Any]:
        pg_pool = self._get_pool()
        try:
            conn = pg_pool.getconn()
        except psycopg2.Error as e:
            log.error("database_connect_failed", error=str(e))
            raise StorageError(f"Could not connect to database: {e}") from e
        try:
            yield conn
        finally:
            pg_pool.putconn(conn)

    def _fetch_all(self, sql: str) -> list[dict[str, Any]]:
        with self._connection() as conn:
            try:
                with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
                    cur.execute(sql)
                    rows = cur.fetchall()
                conn.commit()
            except psycopg2.Error as e:
                conn.rollback()
                log.error("database_read_failed", error=str(e))
                raise StorageError(f"Database read failed: {e}") from e
        return rows

    def fetch_unchained_restaurants(self) -> list[Restaurant]:
        return [_restaurant_from_row(row) for row in self._fetch_all(_FETCH_UNCHAINED)]

    def fetch_chain_summaries(self) -> list[ChainSummary]:
        return [
            ChainSummary(
                chain=_chain_from_row(row),
                location_count=int(row["location_count"]),
                cities=list(row["cities"] or []),
            )
            for row in self._fetch_all(_FETCH_CHAIN_SUMMARIES)
        ]

    @contextmanager
    def transaction(self) -> Iterator[_PostgresTransaction]:
        """Run the block in one transaction; commit on success, roll back on error."""
        with self._connection() as conn:
            try:
                with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
                    yield _PostgresTransaction(cur)
                conn.commit()
            except psycopg2.Error as e:
                conn.rollback()
                log.error("database_transaction_rolled_back", error=str(e))
                raise StorageError(f"Database transaction failed: {e}") from e
            except Exception:
                conn.rollback()
                log.warning("database_transaction_rolled_back")
                raise
