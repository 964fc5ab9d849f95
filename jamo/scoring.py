"""Quality and composite scoring for destination candidates."""
from __future__ import annotations

from dataclasses import replace
from typing import Iterable, List, Optional, Sequence, Tuple, TypeVar

from . import config
from .models import Place, ScoredCandidate
from .normalize import Category, Style, Visibility

T = TypeVar("T")


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def quality_score(place: Place, scoring: Optional[config.ScoringConfig] = None) -> float:
    scoring = scoring or config.SCORING_CONFIG
    if place.beauty_score is not None:
        return clamp(place.beauty_score, scoring.beauty_min, scoring.beauty_max)
    if place.visibility is Visibility.HIDDEN_GEM:
        return scoring.quality_default_hidden_gem
    if place.visibility is Visibility.WELL_KNOWN:
        return scoring.quality_default_well_known
    return scoring.quality_default_unknown


def passes_quality_gate(quality: float, style: Style, scoring: Optional[config.ScoringConfig] = None) -> bool:
    """Only the gem style is strict; mainstream tolerates lower-quality places."""
    scoring = scoring or config.SCORING_CONFIG
    if style is Style.MAINSTREAM:
        return True
    return quality >= scoring.quality_gate_min


def time_fit(eta_minutes: float, target_minutes: float, scoring: Optional[config.ScoringConfig] = None) -> float:
    scoring = scoring or config.SCORING_CONFIG
    width = max(scoring.time_fit_floor_minutes, target_minutes * scoring.time_fit_factor)
    return clamp(1 - abs(eta_minutes - target_minutes) / width, 0.0, 1.0)


def out_of_band_penalty(
    eta_minutes: float, target_minutes: float, scoring: Optional[config.ScoringConfig] = None
) -> float:
    scoring = scoring or config.SCORING_CONFIG
    ratio = eta_minutes / max(1.0, target_minutes)
    if ratio < scoring.out_of_band_low_ratio or ratio > scoring.out_of_band_high_ratio:
        return scoring.out_of_band_penalty
    return 0.0


def is_mainstream_city(place: Place) -> bool:
    return place.category is Category.CITY and place.visibility is Visibility.WELL_KNOWN


def style_penalty(place: Place, style: Style, scoring: Optional[config.ScoringConfig] = None) -> float:
    scoring = scoring or config.SCORING_CONFIG
    if style is Style.GEM and is_mainstream_city(place):
        return scoring.gem_city_penalty
    return 0.0


def score_candidate(
    candidate: ScoredCandidate,
    target_minutes: float,
    style: Style,
    scoring: Optional[config.ScoringConfig] = None,
) -> float:
    scoring = scoring or config.SCORING_CONFIG
    fit = time_fit(candidate.eta_minutes, target_minutes, scoring)
    region_boost = scoring.region_boost if candidate.in_region else 0.0
    score = (
        scoring.weight_time_fit * fit
        + scoring.weight_quality * candidate.quality
        + region_boost
        - out_of_band_penalty(candidate.eta_minutes, target_minutes, scoring)
        - style_penalty(candidate.place, style, scoring)
    )
    return min(1.0, score)


def rank_sort_key(item) -> Tuple[float, float]:
    return (-float(item.score), float(item.eta_minutes))


def rank_candidates(items: Iterable[T]) -> List[T]:
    """Descending score, then ascending ETA; equal keys keep input order."""
    return sorted(items, key=rank_sort_key)


def score_all(
    candidates: Sequence[ScoredCandidate],
    target_minutes: float,
    style: Style,
    scoring: Optional[config.ScoringConfig] = None,
) -> List[ScoredCandidate]:
    return [
        replace(c, score=score_candidate(c, target_minutes, style, scoring))
        for c in candidates
    ]
