import pytest

from jamo.eligibility import apply_quality_gate, filter_candidates, matches_category
from jamo.models import Origin, Place, Query
from jamo.normalize import Category, Mode, Style
from jamo.travel_time import estimate_minutes, terrain_signal

ORIGIN = Origin(lat=42.35, lon=13.40, label="L'Aquila")


def _record(pid, dlat=0.5, **extra):
    record = {"id": pid, "name": pid.title(), "lat": ORIGIN.lat + dlat, "lon": ORIGIN.lon}
    record.update(extra)
    return record


def _query(**kwargs):
    kwargs.setdefault("time_budget_minutes", 60)
    return Query(origin=ORIGIN, **kwargs)


def test_filters_apply_in_order():
    records = [
        {"id": "bad", "name": "No coords"},
        _record("visited-and-close", dlat=0.0),
        _record("close-and-wrong-type", dlat=0.001, type="sea"),
        _record("wrong-type", type="sea"),
        _record("ok", type="village"),
    ]
    query = _query(category=Category.VILLAGE, excluded_ids=frozenset({"visited-and-close"}))

    candidates, rejections = filter_candidates(records, query)

    assert [c.place.id for c in candidates] == ["ok"]
    assert rejections == {
        "invalid_record": 1,
        "excluded": 1,
        "too_close": 1,
        "category_mismatch": 1,
    }


def test_wildcard_keeps_every_valid_place():
    records = [_record("a", type="sea"), _record("b", type="city"), _record("c")]
    candidates, rejections = filter_candidates(records, _query())
    assert len(candidates) == 3
    assert rejections == {}


def test_candidates_carry_distance_and_eta():
    records = [_record("m", dlat=0.3, tags=["mountain"])]
    (candidate,), _ = filter_candidates(records, _query())
    expected = estimate_minutes(candidate.distance_km, Mode.CAR, terrain_signal(candidate.place))
    assert candidate.distance_km == pytest.approx(33.36, abs=0.1)
    assert candidate.eta_minutes == pytest.approx(expected)


def test_matches_category_through_tags_and_combined():
    village_by_tag = Place(id="v", name="V", lat=0, lon=0, type="nature", tags=("borgo",))
    city = Place(id="c", name="C", lat=0, lon=0, type="city")
    sea = Place(id="s", name="S", lat=0, lon=0, type="sea")

    assert matches_category(village_by_tag, Category.VILLAGE)
    assert matches_category(city, Category.CITY_OR_VILLAGE)
    assert matches_category(village_by_tag, Category.CITY_OR_VILLAGE)
    assert not matches_category(sea, Category.CITY_OR_VILLAGE)
    assert matches_category(sea, Category.ANYWHERE)


def test_quality_gate_is_strict_only_for_gem():
    records = [
        _record("low", beauty_score=0.5),
        _record("high", beauty_score=0.9),
        _record("default-gem", visibility="hidden-gem"),
    ]
    candidates, rejections = filter_candidates(records, _query())

    gem = apply_quality_gate(candidates, Style.GEM, rejection_counts=rejections)
    mainstream = apply_quality_gate(candidates, Style.MAINSTREAM)

    assert sorted(c.place.id for c in gem) == ["default-gem", "high"]
    assert rejections["below_quality"] == 1
    assert len(mainstream) == 3
    assert {c.place.id: c.quality for c in mainstream}["low"] == pytest.approx(0.5)
