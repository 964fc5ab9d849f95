"""Pipeline orchestration.

Both flows share one shape: filter, estimate, score, rank. The car flow adds
the quality gate and a primary-region-first radius expansion between filtering
and scoring; the hub
flow swaps the place pool for airports or stations.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional

from . import config
from .eligibility import apply_quality_gate, filter_candidates
from .hubs import HUB_KIND_BY_MODE, build_route_row, match_hubs, parse_hubs
from .models import Query, ScoredCandidate
from .radius import RadiusSelection, expand_by_region
from .results import assemble, query_input
from .scoring import rank_candidates, score_all

logger = logging.getLogger(__name__)

NO_HUB_MESSAGE = "No hub found near the origin for the chosen mode."
NO_ROUTE_MESSAGE = "No destination hub reachable within the chosen time."


@dataclass
class SuggestionRun:
    ranked: List[ScoredCandidate]
    selection: RadiusSelection
    pool_size: int
    eligible: int
    gated: int
    rejection_counts: Dict[str, int]


def rank_places(
    records: Iterable[Any],
    query: Query,
    scoring: Optional[config.ScoringConfig] = None,
) -> SuggestionRun:
    scoring = scoring or config.SCORING_CONFIG
    records = list(records)

    logger.info("Stage 1: eligibility (%s records)", len(records))
    candidates, rejection_counts = filter_candidates(records, query, scoring)

    logger.info("Stage 2: quality gate (%s, %s candidates)", query.style.value, len(candidates))
    gated = apply_quality_gate(candidates, query.style, scoring, rejection_counts)

    logger.info("Stage 3: radius expansion (%s candidates)", len(gated))
    selection = expand_by_region(gated, query.time_budget_minutes, scoring)

    logger.info("Stage 4: scoring (%s candidates)", len(selection.candidates))
    scored = score_all(selection.candidates, query.time_budget_minutes, query.style, scoring)
    ranked = rank_candidates(scored)

    return SuggestionRun(
        ranked=ranked,
        selection=selection,
        pool_size=len(records),
        eligible=len(candidates),
        gated=len(gated),
        rejection_counts=rejection_counts,
    )


def suggest(
    records: Iterable[Any],
    query: Query,
    scoring: Optional[config.ScoringConfig] = None,
    dataset: str = "",
    region: str = "",
) -> Dict[str, Any]:
    """Car, walk and bike suggestion.

    `region` is the dataset's primary region; a region named on the query
    takes precedence.
    """
    scoring = scoring or config.SCORING_CONFIG
    if region and not query.primary_region:
        query = replace(query, primary_region=region)
    run = rank_places(records, query, scoring)
    debug = {
        "dataset": dataset,
        "pool_size": run.pool_size,
        "eligible": run.eligible,
        "after_quality_gate": run.gated,
        "radius_pool": len(run.selection.candidates),
        "primary_region": query.primary_region or None,
        "in_region": sum(1 for c in run.selection.candidates if c.in_region),
        "rejections": dict(sorted(run.rejection_counts.items())),
        "mode": query.mode.value,
        "category": query.category.value,
        "style": query.style.value,
    }
    logger.info("Stage 5: result (%s ranked)", len(run.ranked))
    return assemble(run.ranked, run.selection, query, scoring, debug=debug)


def plan(
    hub_records: Iterable[Any],
    query: Query,
    hubs_config: Optional[config.HubConfig] = None,
    scoring: Optional[config.ScoringConfig] = None,
    dataset: str = "",
) -> Dict[str, Any]:
    scoring = scoring or config.SCORING_CONFIG
    kind = HUB_KIND_BY_MODE.get(query.mode, "")
    hubs, dropped = parse_hubs(hub_records, kind=kind)
    logger.info("Stage 1: hubs (%s valid, %s dropped)", len(hubs), dropped)

    origin_hub, access_minutes, ranked, rejection_counts = match_hubs(
        hubs, query, hubs_config, scoring
    )
    rows = [build_route_row(r) for r in ranked[: query.limit]]

    payload: Dict[str, Any] = {
        "ok": True,
        "input": query_input(query),
        "origin_hub": origin_hub.to_dict() if origin_hub else None,
        "access_min": round(access_minutes) if origin_hub else None,
        "top": rows[0] if rows else None,
        "alternatives": rows[1 : 1 + scoring.alternatives_count],
        "results": rows,
    }
    if origin_hub is None:
        payload["message"] = NO_HUB_MESSAGE
    elif not rows:
        payload["message"] = NO_ROUTE_MESSAGE
    payload["debug"] = {
        "dataset": dataset,
        "hubs": len(hubs),
        "dropped": dropped,
        "found": len(ranked),
        "rejections": dict(sorted(rejection_counts.items())),
        "mode": query.mode.value,
    }
    return payload
