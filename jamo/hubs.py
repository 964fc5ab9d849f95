"""Hub-to-hub matching for plane, train and bus trips."""
from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from . import config
from .geo import haversine_km
from .models import Hub, HubRoute, Query
from .normalize import Mode
from .scoring import clamp, rank_candidates, time_fit
from .travel_time import estimate_access_minutes, estimate_hub_minutes

logger = logging.getLogger(__name__)

HUB_KIND_BY_MODE = {
    Mode.PLANE: "airport",
    Mode.TRAIN: "station",
    Mode.BUS: "station",
}


def hub_key(hub: Hub) -> str:
    return hub.key


def parse_hubs(records: Iterable[Any], kind: str = "") -> Tuple[List[Hub], int]:
    """Returns (hubs, dropped_count)."""
    hubs: List[Hub] = []
    dropped = 0
    for record in records:
        hub = record if isinstance(record, Hub) else Hub.from_record(record, kind=kind)
        if hub is None:
            dropped += 1
            continue
        hubs.append(hub)
    return hubs, dropped


def dedup_hubs(hubs: Iterable[Hub]) -> List[Hub]:
    seen = set()
    out: List[Hub] = []
    for hub in hubs:
        key = hub_key(hub)
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(hub)
    return out


def nearest_hub(hubs: Sequence[Hub], lat: float, lon: float) -> Tuple[Optional[Hub], float]:
    best: Optional[Hub] = None
    best_km = math.inf
    for hub in hubs:
        if not (math.isfinite(hub.lat) and math.isfinite(hub.lon)):
            continue
        km = haversine_km(lat, lon, hub.lat, hub.lon)
        if km < best_km:
            best_km = km
            best = hub
    return best, best_km


def hub_label(hub: Hub, mode: Mode) -> str:
    if mode is Mode.PLANE:
        return hub.code or hub.name
    return hub.name


def route_summary(origin_hub: Hub, hub: Hub, mode: Mode) -> str:
    prefix = {Mode.PLANE: "Flight", Mode.TRAIN: "Train", Mode.BUS: "Bus"}[mode]
    return f"{prefix} {hub_label(origin_hub, mode)} → {hub_label(hub, mode)}"


def distance_preference(distance_km: float, budget_minutes: float, cruise_kmh: float) -> float:
    reach_km = max(1.0, cruise_kmh * budget_minutes / 60.0)
    return clamp(1 - distance_km / reach_km, 0.0, 1.0)


def score_route(
    distance_km: float,
    total_minutes: float,
    budget_minutes: float,
    mode: Mode,
    hubs_config: config.HubConfig,
    scoring: config.ScoringConfig,
) -> float:
    weight = clamp(hubs_config.distance_preference_weight, 0.0, 1.0)
    profile = hubs_config.profile(mode.value)
    fit = time_fit(total_minutes, budget_minutes, scoring)
    near = distance_preference(distance_km, budget_minutes, profile.cruise_kmh)
    return (1 - weight) * fit + weight * near


def match_hubs(
    hubs: Sequence[Hub],
    query: Query,
    hubs_config: Optional[config.HubConfig] = None,
    scoring: Optional[config.ScoringConfig] = None,
) -> Tuple[Optional[Hub], float, List[HubRoute], Dict[str, int]]:
    """Rank every hub reachable from the hub nearest to the origin.

    A route fits when the access leg plus the main leg stays within the
    time budget. Returns (origin_hub, access_minutes, ranked_routes, rejection_counts).
    """
    hubs_config = hubs_config or config.HUB_CONFIG
    scoring = scoring or config.SCORING_CONFIG
    mode = query.mode
    if not mode.is_hub_mode:
        raise ValueError(f"Hub matching needs a hub mode, got {mode.value}")
    profile = hubs_config.profile(mode.value)
    rejection_counts: Dict[str, int] = {}

    pool = dedup_hubs(hubs)
    origin_hub, access_km = nearest_hub(pool, query.origin.lat, query.origin.lon)
    if origin_hub is None:
        return None, 0.0, [], rejection_counts
    access_minutes = estimate_access_minutes(access_km, mode, hubs_config)
    origin_key = hub_key(origin_hub)

    routes: List[HubRoute] = []
    for hub in pool:
        key = hub_key(hub)
        if key == origin_key:
            continue
        if hub.id in query.excluded_ids or key in query.excluded_ids:
            rejection_counts["excluded"] = rejection_counts.get("excluded", 0) + 1
            continue
        km = haversine_km(origin_hub.lat, origin_hub.lon, hub.lat, hub.lon)
        if km < profile.min_hub_distance_km:
            rejection_counts["too_close"] = rejection_counts.get("too_close", 0) + 1
            continue
        eta = estimate_hub_minutes(km, mode, hubs_config)
        total = access_minutes + eta
        if total > query.time_budget_minutes:
            rejection_counts["over_budget"] = rejection_counts.get("over_budget", 0) + 1
            continue
        routes.append(
            HubRoute(
                origin_hub=origin_hub,
                hub=hub,
                distance_km=km,
                eta_minutes=eta,
                access_minutes=access_minutes,
                score=score_route(km, total, query.time_budget_minutes, mode, hubs_config, scoring),
                summary=route_summary(origin_hub, hub, mode),
            )
        )

    logger.info(
        "Hub matching (%s): origin hub %s, %s reachable of %s",
        mode.value,
        origin_key,
        len(routes),
        len(pool),
    )
    return origin_hub, access_minutes, rank_candidates(routes), rejection_counts


def build_route_row(route: HubRoute) -> Dict[str, Any]:
    return {
        "destination_hub": route.hub.to_dict(),
        "origin_hub": route.origin_hub.to_dict(),
        "distance_km": round(route.distance_km),
        "main_min": round(route.eta_minutes),
        "access_min": round(route.access_minutes),
        "total_min": round(route.total_minutes),
        "score": round(route.score, 3),
        "summary": route.summary,
    }
