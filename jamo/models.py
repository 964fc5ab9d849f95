"""Typed records flowing through the suggestion pipelines."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Mapping, Optional, Tuple

from .geo import is_finite_coord, to_float
from .normalize import (
    Category,
    Mode,
    Style,
    Visibility,
    canonicalize_place_type,
    canonicalize_visibility,
    normalize,
)


def _str_tuple(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(v) for v in value if v is not None and str(v).strip())


@dataclass(frozen=True)
class Place:
    id: str
    name: str
    lat: float
    lon: float
    type: str = ""
    tags: Tuple[str, ...] = ()
    visibility: Optional[Visibility] = None
    beauty_score: Optional[float] = None
    why: Tuple[str, ...] = ()
    area: str = ""
    region: str = ""
    country: str = ""

    @classmethod
    def from_record(cls, record: Any) -> Optional["Place"]:
        """Build a Place from a raw dataset record; None when it is malformed."""
        if not isinstance(record, Mapping):
            return None
        place_id = record.get("id")
        name = record.get("name")
        if place_id is None or not str(place_id).strip() or not name or not str(name).strip():
            return None
        lat = record.get("lat")
        lon = record.get("lon", record.get("lng"))
        if not is_finite_coord(lat, lon):
            return None
        beauty = to_float(record.get("beauty_score"))
        return cls(
            id=str(place_id),
            name=str(name),
            lat=to_float(lat),
            lon=to_float(lon),
            type=str(record.get("type") or ""),
            tags=_str_tuple(record.get("tags")),
            visibility=canonicalize_visibility(record.get("visibility")),
            beauty_score=beauty if math.isfinite(beauty) else None,
            why=_str_tuple(record.get("why")),
            area=str(record.get("area") or ""),
            region=str(record.get("region") or ""),
            country=str(record.get("country") or ""),
        )

    @property
    def normalized_tags(self) -> FrozenSet[str]:
        return frozenset(t for t in (normalize(tag) for tag in self.tags) if t)

    @property
    def category(self) -> Optional[Category]:
        return canonicalize_place_type(self.type)

    @property
    def tag_categories(self) -> FrozenSet[Category]:
        found = (canonicalize_place_type(tag) for tag in self.tags)
        return frozenset(c for c in found if c is not None)


@dataclass(frozen=True)
class Hub:
    id: str
    name: str
    lat: float
    lon: float
    code: str = ""
    country: str = ""
    kind: str = ""

    @classmethod
    def from_record(cls, record: Any, kind: str = "") -> Optional["Hub"]:
        if not isinstance(record, Mapping):
            return None
        name = record.get("name")
        if not name or not str(name).strip():
            return None
        lat = record.get("lat")
        lon = record.get("lon", record.get("lng"))
        if not is_finite_coord(lat, lon):
            return None
        code = str(record.get("code") or record.get("iata") or "").strip().upper()
        hub_id = record.get("id") or code or normalize(name)
        return cls(
            id=str(hub_id),
            name=str(name).strip(),
            lat=to_float(lat),
            lon=to_float(lon),
            code=code,
            country=str(record.get("country") or ""),
            kind=str(record.get("kind") or kind),
        )

    @property
    def key(self) -> str:
        return self.code if self.code else normalize(self.name)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code or None,
            "name": self.name,
            "lat": self.lat,
            "lon": self.lon,
            "country": self.country,
            "kind": self.kind,
        }


@dataclass(frozen=True)
class Origin:
    lat: float
    lon: float
    label: str = ""

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lon": self.lon, "label": self.label}


@dataclass(frozen=True)
class Query:
    origin: Origin
    time_budget_minutes: float
    mode: Mode = Mode.CAR
    category: Category = Category.ANYWHERE
    style: Style = Style.MAINSTREAM
    excluded_ids: FrozenSet[str] = field(default_factory=frozenset)
    limit: int = 8
    primary_region: str = ""


@dataclass(frozen=True)
class ScoredCandidate:
    place: Place
    distance_km: float
    eta_minutes: float
    quality: float = 0.0
    score: float = 0.0
    in_region: bool = False


@dataclass(frozen=True)
class HubRoute:
    origin_hub: Hub
    hub: Hub
    distance_km: float
    eta_minutes: float
    access_minutes: float
    score: float = 0.0
    summary: str = ""

    @property
    def total_minutes(self) -> float:
        return self.access_minutes + self.eta_minutes
