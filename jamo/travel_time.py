"""Average-speed travel time estimates.

This is a proxy, not a routing engine: single-leg modes divide distance by a
speed picked from the destination's terrain, hub modes add a fixed boarding
overhead to a cruise-speed leg and clamp the result to a realistic range.
"""
from __future__ import annotations

import math
from enum import Enum
from typing import Optional

from . import config
from .models import Place
from .normalize import Category, Mode


class Terrain(str, Enum):
    MOUNTAIN = "mountain"
    COASTAL = "coastal"
    URBAN = "urban"
    UNCLASSIFIED = "unclassified"


_MOUNTAIN_HINTS = ("mountain", "montagna", "monte", "peak", "rifugio", "passo", "alpine", "appennin")
_COASTAL_HINTS = ("coastal", "coast", "sea", "mare", "beach", "spiagg", "lungomare", "costa")
_URBAN_HINTS = ("city", "citta", "urban", "town")


def _has_hint(values, hints) -> bool:
    return any(h in v for v in values for h in hints)


def terrain_signal(place: Place) -> Terrain:
    """Mountain roots win over coastal, coastal over urban."""
    categories = set(place.tag_categories)
    if place.category is not None:
        categories.add(place.category)
    words = set(place.normalized_tags)
    if place.type:
        words.add(place.type.lower())

    if Category.MOUNTAIN in categories or _has_hint(words, _MOUNTAIN_HINTS):
        return Terrain.MOUNTAIN
    if Category.SEA in categories or _has_hint(words, _COASTAL_HINTS):
        return Terrain.COASTAL
    if Category.CITY in categories or _has_hint(words, _URBAN_HINTS):
        return Terrain.URBAN
    return Terrain.UNCLASSIFIED


def _safe_distance(distance_km: float) -> float:
    if distance_km is None or not math.isfinite(distance_km):
        return 0.0
    return max(0.0, float(distance_km))


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def car_speed_kmh(terrain: Terrain, scoring: config.ScoringConfig) -> float:
    if terrain is Terrain.MOUNTAIN:
        return scoring.car_speed_mountain_kmh
    if terrain is Terrain.COASTAL:
        return scoring.car_speed_coastal_kmh
    if terrain is Terrain.URBAN:
        return scoring.car_speed_urban_kmh
    return scoring.car_speed_default_kmh


def single_leg_speed_kmh(mode: Mode, terrain: Terrain, scoring: config.ScoringConfig) -> float:
    if mode is Mode.WALK:
        return scoring.walk_speed_kmh
    if mode is Mode.BIKE:
        return scoring.bike_speed_kmh
    return car_speed_kmh(terrain, scoring)


def estimate_hub_minutes(distance_km: float, mode: Mode, hubs: config.HubConfig) -> float:
    profile = hubs.profile(mode.value)
    km = _safe_distance(distance_km)
    minutes = (km / profile.cruise_kmh) * 60 + profile.overhead_minutes
    return _clamp(minutes, profile.min_minutes, profile.max_minutes)


def estimate_minutes(
    distance_km: float,
    mode: Mode,
    terrain: Terrain = Terrain.UNCLASSIFIED,
    scoring: Optional[config.ScoringConfig] = None,
    hubs: Optional[config.HubConfig] = None,
) -> float:
    if mode.is_hub_mode:
        return estimate_hub_minutes(distance_km, mode, hubs or config.HUB_CONFIG)
    scoring = scoring or config.SCORING_CONFIG
    km = _safe_distance(distance_km)
    return (km / single_leg_speed_kmh(mode, terrain, scoring)) * 60


def estimate_access_minutes(
    distance_km: float, mode: Mode, hubs: Optional[config.HubConfig] = None
) -> float:
    """Ground leg from the origin to its nearest hub."""
    hubs = hubs or config.HUB_CONFIG
    profile = hubs.profile(mode.value)
    km = _safe_distance(distance_km)
    minutes = (km / profile.access_kmh) * 60 + hubs.access_overhead_minutes
    return _clamp(minutes, profile.access_min_minutes, profile.access_max_minutes)
