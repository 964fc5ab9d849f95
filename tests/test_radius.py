from dataclasses import replace

from jamo.models import Place, ScoredCandidate
from jamo.radius import expand_by_region, expand_radius


def _cands(etas):
    return [
        ScoredCandidate(
            place=Place(id=f"p{i}", name=f"P{i}", lat=42.0, lon=13.0),
            distance_km=eta,
            eta_minutes=eta,
        )
        for i, eta in enumerate(etas)
    ]


def test_first_cap_with_enough_candidates_wins():
    selection = expand_radius(_cands(range(50, 60)), 60)
    assert selection.multiplier == 1.05
    assert len(selection.candidates) == 10
    assert not selection.widened
    assert selection.note is None


def test_wide_cap_sets_honesty_note():
    selection = expand_radius(_cands(range(70, 80)), 60)
    assert selection.multiplier == 1.35
    assert selection.widened
    assert "60 min" in selection.note
    assert "~79 min" in selection.note


def test_fallback_to_closest_when_no_cap_is_enough():
    selection = expand_radius(_cands([140, 100, 120, 180, 150]), 30)
    assert selection.fallback
    assert selection.multiplier is None
    assert [c.eta_minutes for c in selection.candidates] == [100, 120, 140, 150, 180]
    assert selection.widened
    assert selection.note
    assert selection.to_dict() == {"multiplier": None, "cap_min": 180, "fallback": True, "widened": True}


def test_fallback_within_honesty_threshold_is_not_widened():
    selection = expand_radius(_cands([40, 50, 55]), 60)
    assert selection.fallback
    assert len(selection.candidates) == 3
    assert not selection.widened
    assert selection.note is None


def test_fallback_is_capped():
    selection = expand_radius(_cands(range(200, 240)), 30)
    assert len(selection.candidates) == 30
    assert max(c.eta_minutes for c in selection.candidates) == 229


def test_never_empty_for_non_empty_input():
    for etas in ([5], [10 ** 5], [1, 2, 3]):
        assert expand_radius(_cands(etas), 45).candidates
    assert expand_radius([], 45).candidates == []


def _regional(etas, in_region):
    return [replace(c, in_region=in_region) for c in _cands(etas)]


def test_region_first_without_primary_is_plain_expansion():
    candidates = _cands(range(50, 60))
    assert expand_by_region(candidates, 60) == expand_radius(candidates, 60)


def test_region_first_merges_when_thin():
    local = _regional([40, 50], True)
    away = [replace(c, place=replace(c.place, id=f"n{i}")) for i, c in enumerate(_regional([100, 120], False))]

    selection = expand_by_region(local + away, 60)

    assert [c.place.id for c in selection.candidates] == ["p0", "p1", "n0", "n1"]
    assert selection.fallback
    assert selection.multiplier is None
    assert selection.widened
    assert "~120 min" in selection.note
