"""Tabular input and output for offline chain scans (CSV, XLSX, JSONL)."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pandas as pd

from chaindetect.types import CandidateCluster, Restaurant

CLUSTER_COLUMNS = [
    "cluster_rank",
    "suggested_name",
    "normalized_name",
    "confidence",
    "location_count",
    "average_similarity",
    "restaurant_id",
    "restaurant_name",
    "city_id",
]


def _read_frame(path: Path) -> pd.DataFrame:
    if path.suffix in (".xlsx", ".xls"):
        return pd.read_excel(path)
    if path.suffix == ".jsonl":
        return pd.read_json(path, lines=True)
    return pd.read_csv(path)


def _optional(row: pd.Series, column: str, cast: Any = None) -> Any:
    value = row.get(column)
    if value is None or pd.isna(value):
        return None
    return cast(value) if cast else value


def read_restaurants(path: str | Path) -> list[Restaurant]:
    """Read restaurants exported from the database.

    Requires ``id`` and ``name`` columns; ``address``, ``city_id``,
    ``neighborhood_id``, ``latitude``, ``longitude``, ``chain_id`` and
    ``created_at`` are picked up when present. Rows without an id are skipped.
    """
    path = Path(path)
    df = _read_frame(path)
    missing = {"id", "name"} - set(df.columns)
    if missing:
        raise ValueError(f"{path} is missing required columns: {', '.join(sorted(missing))}")

    restaurants: list[Restaurant] = []
    for _, row in df.iterrows():
        if pd.isna(row["id"]):
            continue
        created_at = _optional(row, "created_at")
        restaurants.append(
            Restaurant(
                id=int(row["id"]),
                name=_optional(row, "name", str),
                address=_optional(row, "address", str),
                city_id=_optional(row, "city_id", int),
                neighborhood_id=_optional(row, "neighborhood_id", int),
                latitude=_optional(row, "latitude", float),
                longitude=_optional(row, "longitude", float),
                chain_id=_optional(row, "chain_id", int),
                created_at=pd.Timestamp(created_at).to_pydatetime() if created_at else None,
            )
        )
    return restaurants


def clusters_to_frame(clusters: list[CandidateCluster]) -> pd.DataFrame:
    """Flatten clusters to one row per member restaurant."""
    rows: list[dict[str, Any]] = []
    for rank, cluster in enumerate(clusters, start=1):
        for restaurant in cluster.locations:
            rows.append({
                "cluster_rank": rank,
                "suggested_name": cluster.suggested_name,
                "normalized_name": cluster.normalized_name,
                "confidence": cluster.confidence,
                "location_count": cluster.location_count,
                "average_similarity": cluster.average_similarity,
                "restaurant_id": restaurant.id,
                "restaurant_name": restaurant.name,
                "city_id": restaurant.city_id,
            })
    return pd.DataFrame(rows, columns=CLUSTER_COLUMNS)


def write_clusters(clusters: list[CandidateCluster], path: str | Path) -> None:
    """Write scan results to CSV, XLSX or JSONL based on the file suffix."""
    path = Path(path)
    df = clusters_to_frame(clusters)
    if path.suffix == ".xlsx":
        df.to_excel(path, index=False)
    elif path.suffix == ".jsonl":
        df.to_json(path, orient="records", lines=True)
    else:
        df.to_csv(path, index=False)
