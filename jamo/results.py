"""Response shaping for ranked suggestions."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

from . import config
from .models import Origin, Query, ScoredCandidate
from .normalize import Mode, Style
from .radius import RadiusSelection

NO_RESULT_MESSAGE = "No destination found in the dataset for the chosen filters."

_MODE_LABELS = {
    Mode.CAR: "by car",
    Mode.WALK: "on foot",
    Mode.BIKE: "by bike",
}

_TRAVEL_MODES = {
    Mode.CAR: "driving",
    Mode.WALK: "walking",
    Mode.BIKE: "bicycling",
}


def gmaps_link(origin: Origin, lat: float, lon: float, mode: Mode = Mode.CAR) -> str:
    o = quote(f"{origin.lat},{origin.lon}", safe="")
    d = quote(f"{lat},{lon}", safe="")
    travel = _TRAVEL_MODES.get(mode, "driving")
    return f"https://www.google.com/maps/dir/?api=1&origin={o}&destination={d}&travelmode={travel}"


def filler_reasons(candidate: ScoredCandidate, query: Query) -> List[str]:
    eta = round(candidate.eta_minutes)
    km = round(candidate.distance_km)
    label = _MODE_LABELS.get(query.mode, "by car")
    reasons = [f"About {eta} min {label} (estimate), ~{km} km away."]
    if query.style is Style.GEM:
        reasons.append("Off the beaten path: a quieter pick that fits your time.")
    else:
        reasons.append("A solid, well-loved trip for the time you have.")
    return reasons


def build_why(
    candidate: ScoredCandidate,
    query: Query,
    selection: Optional[RadiusSelection],
    scoring: Optional[config.ScoringConfig] = None,
) -> List[str]:
    scoring = scoring or config.SCORING_CONFIG
    why: List[str] = []
    if selection is not None and selection.widened and selection.note:
        why.append(selection.note)
    why.extend(candidate.place.why[: scoring.max_why])
    if len(why) < scoring.min_why:
        for reason in filler_reasons(candidate, query):
            if len(why) >= scoring.min_why:
                break
            why.append(reason)
    return why[: scoring.max_why]


def build_place_row(
    candidate: ScoredCandidate,
    query: Query,
    selection: Optional[RadiusSelection] = None,
    scoring: Optional[config.ScoringConfig] = None,
) -> Dict[str, Any]:
    scoring = scoring or config.SCORING_CONFIG
    place = candidate.place
    return {
        "id": place.id,
        "name": place.name,
        "area": place.area,
        "type": place.type or "place",
        "visibility": place.visibility.value if place.visibility else "",
        "beauty_score": place.beauty_score,
        "lat": place.lat,
        "lon": place.lon,
        "eta_min": round(candidate.eta_minutes),
        "distance_km": round(candidate.distance_km),
        "quality": round(candidate.quality, 3),
        "score": round(candidate.score, 3),
        "tags": list(place.tags[: scoring.max_tags]),
        "why": build_why(candidate, query, selection, scoring),
        "gmaps": gmaps_link(query.origin, place.lat, place.lon, query.mode),
    }


def query_input(query: Query) -> Dict[str, Any]:
    out = {
        "origin": query.origin.to_dict(),
        "maxMinutes": query.time_budget_minutes,
        "mode": query.mode.value,
        "category": query.category.value,
        "style": query.style.value,
    }
    if query.primary_region:
        out["primary_region"] = query.primary_region
    return out


def assemble(
    ranked: Sequence[ScoredCandidate],
    selection: Optional[RadiusSelection],
    query: Query,
    scoring: Optional[config.ScoringConfig] = None,
    debug: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    scoring = scoring or config.SCORING_CONFIG
    payload: Dict[str, Any] = {
        "ok": True,
        "input": query_input(query),
        "top": None,
        "alternatives": [],
    }
    if selection is not None:
        payload["used_radius"] = selection.to_dict()
        if selection.note:
            payload["note"] = selection.note

    if not ranked:
        payload["message"] = NO_RESULT_MESSAGE
    else:
        payload["top"] = build_place_row(ranked[0], query, selection, scoring)
        payload["alternatives"] = [
            build_place_row(c, query, selection, scoring)
            for c in ranked[1 : 1 + scoring.alternatives_count]
        ]

    if debug is not None:
        payload["debug"] = debug
    return payload
