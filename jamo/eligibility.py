"""Candidate eligibility filters and the quality gate."""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Tuple

from . import config
from .geo import haversine_km
from .models import Place, Query, ScoredCandidate
from .normalize import Category, Style, normalize
from .scoring import passes_quality_gate, quality_score
from .travel_time import estimate_minutes, terrain_signal

logger = logging.getLogger(__name__)


def matches_category(place: Place, category: Category) -> bool:
    if category.is_wildcard:
        return True
    wanted = category.members()
    if place.category in wanted:
        return True
    tag_categories = place.tag_categories
    if any(c in tag_categories for c in wanted):
        return True
    raw = place.normalized_tags | {place.type.lower()}
    return any(c.value in raw for c in wanted)


def in_primary_region(place: Place, region: str) -> bool:
    """Match on the record's region, or its area when no region is set."""
    wanted = normalize(region)
    if not wanted:
        return False
    return normalize(place.region or place.area) == wanted


def _reject(counts: Dict[str, int], reason: str) -> None:
    counts[reason] = counts.get(reason, 0) + 1


def filter_candidates(
    records: Iterable[Any],
    query: Query,
    scoring: Optional[config.ScoringConfig] = None,
) -> Tuple[List[ScoredCandidate], Dict[str, int]]:
    """Validity, exclusion, minimum distance, then category match.

    Distance and ETA are computed before the category check because every
    surviving candidate needs them downstream.
    """
    scoring = scoring or config.SCORING_CONFIG
    candidates: List[ScoredCandidate] = []
    rejection_counts: Dict[str, int] = {}
    origin = query.origin

    for record in records:
        place = record if isinstance(record, Place) else Place.from_record(record)
        if place is None:
            logger.debug("Dropping malformed place record: %r", record)
            _reject(rejection_counts, "invalid_record")
            continue

        if place.id in query.excluded_ids:
            _reject(rejection_counts, "excluded")
            continue

        km = haversine_km(origin.lat, origin.lon, place.lat, place.lon)
        if km < scoring.min_distance_km:
            _reject(rejection_counts, "too_close")
            continue
        eta = estimate_minutes(km, query.mode, terrain_signal(place), scoring=scoring)

        if not matches_category(place, query.category):
            _reject(rejection_counts, "category_mismatch")
            continue

        candidates.append(
            ScoredCandidate(
                place=place,
                distance_km=km,
                eta_minutes=eta,
                in_region=in_primary_region(place, query.primary_region),
            )
        )

    return candidates, rejection_counts


def apply_quality_gate(
    candidates: Iterable[ScoredCandidate],
    style: Style,
    scoring: Optional[config.ScoringConfig] = None,
    rejection_counts: Optional[Dict[str, int]] = None,
) -> List[ScoredCandidate]:
    scoring = scoring or config.SCORING_CONFIG
    kept: List[ScoredCandidate] = []
    for candidate in candidates:
        quality = quality_score(candidate.place, scoring)
        if not passes_quality_gate(quality, style, scoring):
            if rejection_counts is not None:
                _reject(rejection_counts, "below_quality")
            continue
        kept.append(replace(candidate, quality=quality))
    return kept
