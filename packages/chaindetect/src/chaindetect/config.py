"""Configuration for chain detection and materialization."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

CONFIG_ENV_VAR = "CHAINDETECT_CONFIG"


@dataclass
class DetectionConfig:
    similarity_threshold: float = 0.8
    min_locations: int = 2
    max_results: int = 100
    workers: int = 1  # rapidfuzz cdist workers; -1 uses all cores


@dataclass
class ConfidenceWeights:
    location_count: float = 40.0
    geographic_diversity: float = 30.0
    name_consistency: float = 30.0
    location_saturation: int = 10  # locations needed for the full location score
    city_saturation: int = 3  # cities needed for the full diversity score


@dataclass
class DatabaseConfig:
    url: str = ""
    min_connections: int = 1
    max_connections: int = 5
    connect_timeout: int = 10


@dataclass
class ChainConfig:
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    confidence: ConfidenceWeights = field(default_factory=ConfidenceWeights)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)


def _apply_section(section: Any, overrides: dict[str, Any]) -> None:
    known = {f.name for f in fields(section)}
    for key, value in overrides.items():
        if key not in known:
            raise ValueError(f"Unknown config key '{key}' for {type(section).__name__}")
        current = getattr(section, key)
        # Keep numeric types stable when JSON gives 40 for a float field
        if isinstance(current, float) and isinstance(value, int):
            value = float(value)
        setattr(section, key, value)


def load_config(path: str | Path | None = None) -> ChainConfig:
    """Build a ChainConfig from defaults, an optional JSON file and the environment.

    The JSON file has one object per section, e.g.
    ``{"confidence": {"location_count": 50}, "detection": {"workers": 4}}``.
    Its path comes from ``path`` or the CHAINDETECT_CONFIG env var. The
    DATABASE_URL env var wins over any file value.
    """
    config = ChainConfig()

    config_path = path or os.environ.get(CONFIG_ENV_VAR)
    if config_path:
        data = json.loads(Path(config_path).read_text())
        for section_name, overrides in data.items():
            if not hasattr(config, section_name):
                raise ValueError(f"Unknown config section '{section_name}'")
            _apply_section(getattr(config, section_name), overrides)

    database_url = os.environ.get("DATABASE_URL")
    if database_url:
        config.database.url = database_url

    return config
