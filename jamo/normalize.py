"""Text normalization and the closed place taxonomy.

Free-text request values (category, style, mode) and the loosely typed fields
of dataset records (type, tags, visibility) are resolved here into enums, so
the rest of the engine never compares raw strings.
"""
from __future__ import annotations

import re
import unicodedata
from enum import Enum
from typing import Any, Dict, Optional, Tuple


def normalize(text: Any) -> str:
    if text is None:
        return ""
    decomposed = unicodedata.normalize("NFD", str(text).lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.strip()


def _tokens(text: str) -> Tuple[str, ...]:
    return tuple(t for t in re.split(r"[^a-z0-9]+", text) if t)


class Category(str, Enum):
    CITY = "city"
    VILLAGE = "village"
    CITY_OR_VILLAGE = "city_or_village"
    SEA = "sea"
    MOUNTAIN = "mountain"
    NATURE = "nature"
    RELAX = "relax"
    FAMILY = "family"
    HISTORY = "history"
    ANYWHERE = "anywhere"

    @property
    def is_wildcard(self) -> bool:
        return self is Category.ANYWHERE

    def members(self) -> Tuple["Category", ...]:
        if self is Category.CITY_OR_VILLAGE:
            return (Category.CITY, Category.VILLAGE)
        return (self,)


class Style(str, Enum):
    MAINSTREAM = "mainstream"
    GEM = "gem"


class Visibility(str, Enum):
    WELL_KNOWN = "well-known"
    HIDDEN_GEM = "hidden-gem"


class Mode(str, Enum):
    CAR = "car"
    WALK = "walk"
    BIKE = "bike"
    PLANE = "plane"
    TRAIN = "train"
    BUS = "bus"

    @property
    def is_hub_mode(self) -> bool:
        return self in (Mode.PLANE, Mode.TRAIN, Mode.BUS)


DEFAULT_CATEGORY = Category.ANYWHERE
DEFAULT_STYLE = Style.MAINSTREAM
DEFAULT_MODE = Mode.CAR

WILDCARD_SYNONYMS = {"any", "anywhere", "random", "all", "everywhere", "ovunque", "qualsiasi", "*"}

# Token -> concrete category. Used for requests, place types and tags alike.
_CATEGORY_SYNONYMS: Dict[str, Category] = {
    "city": Category.CITY,
    "cities": Category.CITY,
    "town": Category.CITY,
    "citta": Category.CITY,
    "village": Category.VILLAGE,
    "villages": Category.VILLAGE,
    "hamlet": Category.VILLAGE,
    "borgo": Category.VILLAGE,
    "borghi": Category.VILLAGE,
    "sea": Category.SEA,
    "mare": Category.SEA,
    "beach": Category.SEA,
    "beaches": Category.SEA,
    "spiaggia": Category.SEA,
    "spiagge": Category.SEA,
    "coast": Category.SEA,
    "coastal": Category.SEA,
    "mountain": Category.MOUNTAIN,
    "mountains": Category.MOUNTAIN,
    "montagna": Category.MOUNTAIN,
    "peak": Category.MOUNTAIN,
    "nature": Category.NATURE,
    "natura": Category.NATURE,
    "park": Category.NATURE,
    "parco_nazionale": Category.NATURE,
    "lake": Category.NATURE,
    "lago": Category.NATURE,
    "relax": Category.RELAX,
    "spa": Category.RELAX,
    "terme": Category.RELAX,
    "wellness": Category.RELAX,
    "family": Category.FAMILY,
    "famiglia": Category.FAMILY,
    "famiglie": Category.FAMILY,
    "kids": Category.FAMILY,
    "bambini": Category.FAMILY,
    "history": Category.HISTORY,
    "historic": Category.HISTORY,
    "storia": Category.HISTORY,
    "castle": Category.HISTORY,
    "castello": Category.HISTORY,
    "museum": Category.HISTORY,
}

_CITY_ROOTS = ("city", "cities", "citta", "town")
_VILLAGE_ROOTS = ("village", "borg", "hamlet")

_STYLE_SYNONYMS: Dict[str, Style] = {
    "mainstream": Style.MAINSTREAM,
    "known": Style.MAINSTREAM,
    "classic": Style.MAINSTREAM,
    "classics": Style.MAINSTREAM,
    "classici": Style.MAINSTREAM,
    "conosciuta": Style.MAINSTREAM,
    "gem": Style.GEM,
    "gems": Style.GEM,
    "hidden": Style.GEM,
    "hidden-gem": Style.GEM,
    "hidden-gems": Style.GEM,
    "off-the-beaten-path": Style.GEM,
    "offbeat": Style.GEM,
    "chicca": Style.GEM,
    "chicche": Style.GEM,
}

_VISIBILITY_SYNONYMS: Dict[str, Visibility] = {
    "well-known": Visibility.WELL_KNOWN,
    "well_known": Visibility.WELL_KNOWN,
    "known": Visibility.WELL_KNOWN,
    "mainstream": Visibility.WELL_KNOWN,
    "conosciuta": Visibility.WELL_KNOWN,
    "hidden-gem": Visibility.HIDDEN_GEM,
    "hidden_gem": Visibility.HIDDEN_GEM,
    "gem": Visibility.HIDDEN_GEM,
    "chicca": Visibility.HIDDEN_GEM,
}

_MODE_SYNONYMS: Dict[str, Mode] = {
    "car": Mode.CAR,
    "auto": Mode.CAR,
    "drive": Mode.CAR,
    "driving": Mode.CAR,
    "walk": Mode.WALK,
    "foot": Mode.WALK,
    "bike": Mode.BIKE,
    "bicycle": Mode.BIKE,
    "plane": Mode.PLANE,
    "flight": Mode.PLANE,
    "aereo": Mode.PLANE,
    "train": Mode.TRAIN,
    "treno": Mode.TRAIN,
    "bus": Mode.BUS,
}


def canonicalize_category(raw: Any) -> Category:
    text = normalize(raw)
    if not text:
        return DEFAULT_CATEGORY
    if text in WILDCARD_SYNONYMS:
        return Category.ANYWHERE
    if text in {c.value for c in Category}:
        return Category(text)
    if text in _CATEGORY_SYNONYMS:
        return _CATEGORY_SYNONYMS[text]

    has_city = any(root in text for root in _CITY_ROOTS)
    has_village = any(root in text for root in _VILLAGE_ROOTS)
    if has_city and has_village:
        return Category.CITY_OR_VILLAGE

    for token in _tokens(text):
        if token in WILDCARD_SYNONYMS:
            return Category.ANYWHERE
        if token in _CATEGORY_SYNONYMS:
            return _CATEGORY_SYNONYMS[token]
    return DEFAULT_CATEGORY


def canonicalize_place_type(raw: Any) -> Optional[Category]:
    """Map a dataset type or tag to a concrete category, or None."""
    text = normalize(raw)
    if not text:
        return None
    category = _CATEGORY_SYNONYMS.get(text)
    if category is None and text in {c.value for c in Category}:
        category = Category(text)
    if category is None or category.is_wildcard or category is Category.CITY_OR_VILLAGE:
        return None
    return category


def canonicalize_style(raw: Any) -> Style:
    tokens = _tokens(normalize(raw))
    phrase = "-".join(tokens)
    if phrase in _STYLE_SYNONYMS:
        return _STYLE_SYNONYMS[phrase]
    for token in tokens:
        if token in _STYLE_SYNONYMS:
            return _STYLE_SYNONYMS[token]
    return DEFAULT_STYLE


def canonicalize_visibility(raw: Any) -> Optional[Visibility]:
    return _VISIBILITY_SYNONYMS.get(normalize(raw))


def canonicalize_mode(raw: Any) -> Optional[Mode]:
    text = normalize(raw)
    if not text:
        return DEFAULT_MODE
    return _MODE_SYNONYMS.get(text)
