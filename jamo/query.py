"""Request body validation.

Everything here runs before any dataset is touched; bad input raises
InputError and is reported to the client as a 400.
"""
from __future__ import annotations

import math
from typing import Any, FrozenSet, Mapping, Optional

from . import config
from .geo import is_finite_coord, to_float
from .models import Origin, Query
from .normalize import Mode, canonicalize_category, canonicalize_mode, canonicalize_style


class InputError(ValueError):
    pass


def _as_id_set(value: Any) -> FrozenSet[str]:
    if not isinstance(value, (list, tuple, set, frozenset)):
        return frozenset()
    return frozenset(str(v) for v in value if v is not None)


def parse_origin(value: Any) -> Optional[Origin]:
    if not isinstance(value, Mapping):
        return None
    lat = value.get("lat")
    lon = value.get("lon", value.get("lng"))
    if not is_finite_coord(lat, lon):
        return None
    return Origin(lat=to_float(lat), lon=to_float(lon), label=str(value.get("label") or ""))


def parse_time_budget(body: Mapping[str, Any]) -> float:
    raw = body.get("maxMinutes")
    if raw is None:
        raw = body.get("timeBudgetMinutes", body.get("minutes"))
    minutes = to_float(raw)
    if not math.isfinite(minutes) or minutes <= 0:
        raise InputError("maxMinutes must be a positive number")
    return minutes


def parse_mode(body: Mapping[str, Any], hub_only: bool = False) -> Mode:
    mode = canonicalize_mode(body.get("mode"))
    if hub_only:
        if mode is None or not mode.is_hub_mode:
            raise InputError("mode must be one of plane/train/bus")
        return mode
    if mode is None:
        raise InputError("mode must be one of car/walk/bike/plane/train/bus")
    return mode


def parse_limit(body: Mapping[str, Any], hubs_config: Optional[config.HubConfig] = None) -> int:
    hubs_config = hubs_config or config.HUB_CONFIG
    limit = to_float(body.get("limit"))
    if not math.isfinite(limit) or limit <= 0:
        return hubs_config.limit_default
    return int(max(1, min(hubs_config.limit_max, limit)))


def parse_query(
    body: Any,
    origin: Optional[Origin] = None,
    hub_only: bool = False,
) -> Query:
    """Build a Query from a JSON body.

    `origin` is passed in when the caller already resolved it (e.g. geocoded
    from originText); otherwise body["origin"] is required.
    """
    if not isinstance(body, Mapping):
        raise InputError("Request body must be a JSON object")
    if origin is None:
        origin = parse_origin(body.get("origin"))
        if origin is None:
            raise InputError("origin must be {lat, lon} or originText")
    minutes = parse_time_budget(body)
    mode = parse_mode(body, hub_only=hub_only)
    style_raw = body.get("style")
    if style_raw is None:
        style_raw = body.get("flavor")
    excluded = _as_id_set(body.get("visitedIds")) | _as_id_set(body.get("weekIds"))
    return Query(
        origin=origin,
        time_budget_minutes=minutes,
        mode=mode,
        category=canonicalize_category(body.get("category")),
        style=canonicalize_style(style_raw),
        excluded_ids=excluded,
        limit=parse_limit(body),
        primary_region=str(body.get("primaryRegion") or "").strip(),
    )


def origin_text(body: Any) -> str:
    if not isinstance(body, Mapping):
        return ""
    text = str(body.get("originText") or "").strip()
    return text if len(text) >= 2 else ""
