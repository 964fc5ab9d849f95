"""Project configuration.

Loads deployment settings from jamo_config.json when available, falling back
to sensible defaults. Every tunable number of the scoring engine lives in the
frozen ScoringConfig / HubConfig dataclasses so tests can override them.
"""
from __future__ import annotations

import dataclasses
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

_REPO_ROOT = Path(__file__).resolve().parent.parent

# --- Datasets ---

PLACES_PATHS: Tuple[str, ...] = (
    "data/places.json",
    "public/data/macros/places.json",
)
AIRPORTS_PATHS: Tuple[str, ...] = (
    "data/airports.json",
    "public/data/curated_airports_eu_uk.json",
)
STATIONS_PATHS: Tuple[str, ...] = (
    "data/stations.json",
    "public/data/curated_stations_eu_uk.json",
)

# --- Server ---

SERVER_HOST = "127.0.0.1"
SERVER_PORT = 8000

# --- Geocoding ---

NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"
NOMINATIM_USER_AGENT = "Jamo/1.0 (geocode)"
NOMINATIM_LANGUAGE = "it"
NOMINATIM_MIN_INTERVAL_SECONDS = 1.0
GEOCODE_LIMIT_DEFAULT = 3
GEOCODE_LIMIT_MAX = 5
GEOCODE_CACHE_TTL_SECONDS = 86400
GEOCODE_CACHE_DB_PATH = "geocode_cache.db"

# --- HTTP ---

HTTP_TIMEOUT_SECONDS = 12
HTTP_RETRY_MAX = 3
HTTP_BACKOFF_BASE = 0.5
HTTP_BACKOFF_MAX = 8.0

# --- Outputs ---

OUTPUT_DIR = "out"


@dataclass(frozen=True)
class ScoringConfig:
    """Tunable policy of the car (single-leg) pipeline.

    The thresholds are tuning choices, not invariants: the mechanisms (gate,
    band, expanding cap sequence) are what the engine guarantees.
    """

    # travel time, km/h
    car_speed_mountain_kmh: float = 55.0
    car_speed_coastal_kmh: float = 80.0
    car_speed_urban_kmh: float = 80.0
    car_speed_default_kmh: float = 70.0
    walk_speed_kmh: float = 4.5
    bike_speed_kmh: float = 15.0

    # eligibility
    min_distance_km: float = 1.2

    # quality gate
    beauty_min: float = 0.2
    beauty_max: float = 1.0
    quality_default_hidden_gem: float = 0.80
    quality_default_well_known: float = 0.75
    quality_default_unknown: float = 0.72
    quality_gate_min: float = 0.70

    # radius expansion
    radius_multipliers: Tuple[float, ...] = (1.05, 1.18, 1.35, 1.60)
    radius_min_count: int = 10
    radius_fallback_size: int = 30
    honesty_threshold: float = 1.25

    # scoring
    time_fit_floor_minutes: float = 25.0
    time_fit_factor: float = 0.85
    weight_time_fit: float = 0.5
    weight_quality: float = 0.5
    out_of_band_low_ratio: float = 0.55
    out_of_band_high_ratio: float = 1.55
    out_of_band_penalty: float = 0.15
    gem_city_penalty: float = 0.10

    # primary region
    region_boost: float = 0.08
    region_min_count: int = 8

    # result shaping
    alternatives_count: int = 2
    max_tags: int = 10
    max_why: int = 4
    min_why: int = 2


@dataclass(frozen=True)
class HubModeProfile:
    cruise_kmh: float
    overhead_minutes: float
    min_minutes: float
    max_minutes: float
    access_kmh: float
    access_min_minutes: float
    access_max_minutes: float
    min_hub_distance_km: float


@dataclass(frozen=True)
class HubConfig:
    plane: HubModeProfile = HubModeProfile(
        cruise_kmh=820.0,
        overhead_minutes=50.0,
        min_minutes=60.0,
        max_minutes=2400.0,
        access_kmh=70.0,
        access_min_minutes=15.0,
        access_max_minutes=300.0,
        min_hub_distance_km=150.0,
    )
    train: HubModeProfile = HubModeProfile(
        cruise_kmh=145.0,
        overhead_minutes=15.0,
        min_minutes=25.0,
        max_minutes=2400.0,
        access_kmh=35.0,
        access_min_minutes=8.0,
        access_max_minutes=120.0,
        min_hub_distance_km=30.0,
    )
    bus: HubModeProfile = HubModeProfile(
        cruise_kmh=90.0,
        overhead_minutes=15.0,
        min_minutes=30.0,
        max_minutes=3000.0,
        access_kmh=35.0,
        access_min_minutes=8.0,
        access_max_minutes=120.0,
        min_hub_distance_km=20.0,
    )
    access_overhead_minutes: float = 10.0
    distance_preference_weight: float = 0.25
    limit_default: int = 8
    limit_max: int = 20

    def profile(self, mode_value: str) -> HubModeProfile:
        try:
            return getattr(self, mode_value)
        except AttributeError:
            raise ValueError(f"Unknown hub mode: {mode_value}") from None


SCORING_CONFIG = ScoringConfig()
HUB_CONFIG = HubConfig()


def _env_paths(name: str, defaults: Tuple[str, ...]) -> Tuple[str, ...]:
    value = (os.environ.get(name) or "").strip()
    if value:
        return (value,) + tuple(defaults)
    return tuple(defaults)


def places_paths() -> Tuple[str, ...]:
    return _env_paths("JAMO_PLACES_PATH", PLACES_PATHS)


def airports_paths() -> Tuple[str, ...]:
    return _env_paths("JAMO_AIRPORTS_PATH", AIRPORTS_PATHS)


def stations_paths() -> Tuple[str, ...]:
    return _env_paths("JAMO_STATIONS_PATH", STATIONS_PATHS)


def repo_root() -> Path:
    return _REPO_ROOT


def _replace_known(instance: Any, overrides: Dict[str, Any]) -> Any:
    known = {f.name: f for f in dataclasses.fields(instance)}
    updates: Dict[str, Any] = {}
    for key, value in overrides.items():
        if key not in known:
            raise ValueError(f"Unknown scoring setting: {key}")
        current = getattr(instance, key)
        if isinstance(current, tuple):
            updates[key] = tuple(float(v) for v in value)
        elif isinstance(current, bool):
            updates[key] = bool(value)
        elif isinstance(current, int):
            updates[key] = int(value)
        else:
            updates[key] = float(value)
    return dataclasses.replace(instance, **updates)


def load_config(path: Optional[str] = None) -> bool:
    """Load deployment configuration from a JSON file.

    Updates module-level globals with values from the config file.
    Returns True if config was loaded, False if file not found.
    """
    if path is None:
        path = str(_REPO_ROOT / "jamo_config.json")

    config_path = Path(path)
    if not config_path.exists():
        return False

    with open(config_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    globals_ref = globals()

    datasets = data.get("datasets", {})
    for key, name in (
        ("places", "PLACES_PATHS"),
        ("airports", "AIRPORTS_PATHS"),
        ("stations", "STATIONS_PATHS"),
    ):
        value = datasets.get(key)
        if isinstance(value, str) and value.strip():
            globals_ref[name] = (value.strip(),) + tuple(globals_ref[name])
        elif isinstance(value, list) and value:
            globals_ref[name] = tuple(str(v) for v in value)

    server = data.get("server", {})
    if server.get("host"):
        globals_ref["SERVER_HOST"] = str(server["host"])
    if server.get("port") is not None:
        globals_ref["SERVER_PORT"] = int(server["port"])

    geocode = data.get("geocode", {})
    if geocode.get("user_agent"):
        globals_ref["NOMINATIM_USER_AGENT"] = str(geocode["user_agent"])
    if geocode.get("language"):
        globals_ref["NOMINATIM_LANGUAGE"] = str(geocode["language"])
    if geocode.get("cache_ttl_seconds") is not None:
        globals_ref["GEOCODE_CACHE_TTL_SECONDS"] = int(geocode["cache_ttl_seconds"])

    scoring = data.get("scoring", {})
    if scoring:
        globals_ref["SCORING_CONFIG"] = _replace_known(globals_ref["SCORING_CONFIG"], scoring)

    hubs = data.get("hubs", {})
    if "distance_preference_weight" in hubs:
        globals_ref["HUB_CONFIG"] = dataclasses.replace(
            globals_ref["HUB_CONFIG"],
            distance_preference_weight=float(hubs["distance_preference_weight"]),
        )

    return True


def apply_env_overrides() -> None:
    """Apply JAMO_HOST / JAMO_PORT / NOMINATIM_USER_AGENT from the environment."""
    globals_ref = globals()
    host = (os.environ.get("JAMO_HOST") or "").strip()
    if host:
        globals_ref["SERVER_HOST"] = host
    port = (os.environ.get("JAMO_PORT") or "").strip()
    if port:
        globals_ref["SERVER_PORT"] = int(port)
    agent = (os.environ.get("NOMINATIM_USER_AGENT") or "").strip()
    if agent:
        globals_ref["NOMINATIM_USER_AGENT"] = agent
