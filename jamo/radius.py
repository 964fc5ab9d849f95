"""Progressive time-cap relaxation."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from . import config
from .models import ScoredCandidate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RadiusSelection:
    candidates: List[ScoredCandidate]
    multiplier: Optional[float]
    cap_minutes: Optional[float]
    fallback: bool = False
    widened: bool = False
    note: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "multiplier": self.multiplier,
            "cap_min": round(self.cap_minutes) if self.cap_minutes is not None else None,
            "fallback": self.fallback,
            "widened": self.widened,
        }


def honesty_note(target_minutes: float, reached_minutes: float) -> str:
    return (
        f"I had to widen the search: nothing good enough within {round(target_minutes)} min, "
        f"so this is up to ~{round(reached_minutes)} min away."
    )


def closest_by_time(candidates: Sequence[ScoredCandidate], n: int) -> List[ScoredCandidate]:
    ordered = sorted(candidates, key=lambda c: (c.eta_minutes, c.distance_km))
    return ordered[: max(0, n)]


def expand_radius(
    candidates: Sequence[ScoredCandidate],
    target_minutes: float,
    scoring: Optional[config.ScoringConfig] = None,
) -> RadiusSelection:
    """Try ascending caps until enough candidates remain; else the closest N.

    Never returns an empty selection for a non-empty input.
    """
    scoring = scoring or config.SCORING_CONFIG
    if not candidates:
        return RadiusSelection(candidates=[], multiplier=None, cap_minutes=None)

    for multiplier in sorted(scoring.radius_multipliers):
        cap = target_minutes * multiplier
        within = [c for c in candidates if c.eta_minutes <= cap]
        if len(within) >= scoring.radius_min_count:
            widened = multiplier > scoring.honesty_threshold
            note = None
            if widened:
                note = honesty_note(target_minutes, max(c.eta_minutes for c in within))
            logger.info("Radius cap x%.2f (%.0f min): %s candidates", multiplier, cap, len(within))
            return RadiusSelection(
                candidates=within,
                multiplier=multiplier,
                cap_minutes=cap,
                widened=widened,
                note=note,
            )

    closest = closest_by_time(candidates, scoring.radius_fallback_size)
    reached = max(c.eta_minutes for c in closest)
    widened = reached > target_minutes * scoring.honesty_threshold
    logger.info(
        "Radius fallback: %s closest of %s candidates (up to %.0f min)",
        len(closest),
        len(candidates),
        reached,
    )
    return RadiusSelection(
        candidates=closest,
        multiplier=None,
        cap_minutes=reached,
        fallback=True,
        widened=widened,
        note=honesty_note(target_minutes, reached) if widened else None,
    )


def _merge(
    primary: RadiusSelection,
    neighbours: RadiusSelection,
    target_minutes: float,
) -> RadiusSelection:
    candidates = list(primary.candidates) + list(neighbours.candidates)
    if not candidates:
        return primary
    fallback = primary.fallback or neighbours.fallback
    caps = [s.cap_minutes for s in (primary, neighbours) if s.cap_minutes is not None]
    multipliers = [s.multiplier for s in (primary, neighbours) if s.multiplier is not None]
    widened = primary.widened or neighbours.widened
    reached = max(c.eta_minutes for c in candidates)
    return RadiusSelection(
        candidates=candidates,
        multiplier=None if fallback else max(multipliers),
        cap_minutes=max(caps),
        fallback=fallback,
        widened=widened,
        note=honesty_note(target_minutes, reached) if widened else None,
    )


def expand_by_region(
    candidates: Sequence[ScoredCandidate],
    target_minutes: float,
    scoring: Optional[config.ScoringConfig] = None,
) -> RadiusSelection:
    """Expand over the primary region first; add neighbours only when it is thin.

    Neighbours get their own cap sequence when the in-region selection holds
    fewer than `region_min_count` candidates.
    """
    scoring = scoring or config.SCORING_CONFIG
    primary = [c for c in candidates if c.in_region]
    if not primary:
        return expand_radius(candidates, target_minutes, scoring)

    selection = expand_radius(primary, target_minutes, scoring)
    if len(selection.candidates) >= scoring.region_min_count:
        return selection

    others = [c for c in candidates if not c.in_region]
    logger.info(
        "Primary region thin (%s candidates), adding %s neighbours",
        len(selection.candidates),
        len(others),
    )
    return _merge(selection, expand_radius(others, target_minutes, scoring), target_minutes)
