import pytest

from jamo.models import Origin
from jamo.normalize import Category, Mode, Style
from jamo.query import InputError, origin_text, parse_query

BODY = {"origin": {"lat": 42.35, "lon": 13.4}, "maxMinutes": 60}


def _body(**extra):
    body = dict(BODY)
    body.update(extra)
    return body


def test_defaults():
    query = parse_query(BODY)
    assert query.mode is Mode.CAR
    assert query.category is Category.ANYWHERE
    assert query.style is Style.MAINSTREAM
    assert query.excluded_ids == frozenset()
    assert query.limit == 8


def test_aliases():
    query = parse_query(
        {
            "origin": {"lat": "42.35", "lng": "13.4", "label": "Home"},
            "minutes": "45",
            "flavor": "gem",
            "category": "borghi",
            "visitedIds": ["a", "b"],
            "weekIds": ["b", "c"],
        }
    )
    assert query.origin == Origin(42.35, 13.4, "Home")
    assert query.time_budget_minutes == 45
    assert query.style is Style.GEM
    assert query.category is Category.VILLAGE
    assert query.excluded_ids == frozenset({"a", "b", "c"})


@pytest.mark.parametrize(
    "body",
    [
        {"maxMinutes": 60},
        _body(origin={"lat": 100, "lon": 0}),
        _body(maxMinutes=0),
        _body(maxMinutes="soon"),
        _body(maxMinutes=float("nan")),
        _body(mode="teleport"),
    ],
)
def test_invalid_input(body):
    with pytest.raises(InputError):
        parse_query(body)


def test_non_object_body():
    with pytest.raises(InputError):
        parse_query(["not", "a", "dict"])


def test_hub_only_requires_hub_mode():
    with pytest.raises(InputError):
        parse_query(BODY, hub_only=True)
    assert parse_query(_body(mode="train"), hub_only=True).mode is Mode.TRAIN


def test_limit_is_clamped():
    assert parse_query(_body(limit=50)).limit == 20
    assert parse_query(_body(limit=-1)).limit == 8
    assert parse_query(_body(limit=3)).limit == 3


def test_pre_resolved_origin_wins():
    origin = Origin(45.0, 9.0, "Milano")
    assert parse_query({"maxMinutes": 30}, origin=origin).origin == origin


def test_origin_text():
    assert origin_text({"originText": "  Roma "}) == "Roma"
    assert origin_text({"originText": "R"}) == ""
    assert origin_text(None) == ""


def test_primary_region():
    assert parse_query(BODY).primary_region == ""
    assert parse_query(_body(primaryRegion=" Abruzzo ")).primary_region == "Abruzzo"
