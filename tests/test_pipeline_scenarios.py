import pytest

from jamo.models import Origin, Query
from jamo.normalize import Category, Style
from jamo.pipeline import rank_places, suggest

ORIGIN = Origin(lat=42.35, lon=13.40, label="L'Aquila")
KM_PER_DEG_LAT = 111.195


def _at_km(pid, km, direction=1, **extra):
    record = {
        "id": pid,
        "name": pid.replace("-", " ").title(),
        "lat": ORIGIN.lat + direction * km / KM_PER_DEG_LAT,
        "lon": ORIGIN.lon,
    }
    record.update(extra)
    return record


def _query(**kwargs):
    kwargs.setdefault("time_budget_minutes", 60)
    kwargs.setdefault("category", Category.ANYWHERE)
    kwargs.setdefault("style", Style.MAINSTREAM)
    return Query(origin=ORIGIN, **kwargs)


MOUNTAIN = _at_km("gran-sasso-meadow", 20, type="nature", tags=["mountain"], beauty_score=0.8)
COASTAL = _at_km("adriatic-cove", 55, type="village", tags=["coastal"], beauty_score=0.8)


def test_scenario_a_terrain_speeds_and_ranking():
    run = rank_places([MOUNTAIN, COASTAL], _query())
    by_id = {c.place.id: c for c in run.ranked}

    mountain = by_id["gran-sasso-meadow"]
    coastal = by_id["adriatic-cove"]
    assert mountain.eta_minutes == pytest.approx(mountain.distance_km / 55 * 60)
    assert coastal.eta_minutes == pytest.approx(coastal.distance_km / 80 * 60)
    assert run.eligible == 2
    # equal quality, so the ETA closer to 60 min wins
    assert [c.place.id for c in run.ranked] == ["adriatic-cove", "gran-sasso-meadow"]
    assert coastal.score > mountain.score


def test_scenario_b_excluded_top_is_replaced():
    payload = suggest([MOUNTAIN, COASTAL], _query(excluded_ids=frozenset({"adriatic-cove"})))
    surfaced = [payload["top"]["id"]] + [r["id"] for r in payload["alternatives"]]
    assert "adriatic-cove" not in surfaced
    assert payload["top"]["id"] == "gran-sasso-meadow"
    assert payload["debug"]["rejections"] == {"excluded": 1}


def test_excluded_places_never_surface():
    pool = [_at_km(f"p{i}", 20 + 8 * i, direction=(-1) ** i) for i in range(8)]
    for i in range(8):
        payload = suggest(pool, _query(excluded_ids=frozenset({f"p{i}"})))
        surfaced = [payload["top"]["id"]] + [r["id"] for r in payload["alternatives"]]
        assert f"p{i}" not in surfaced


def test_scenario_c_fallback_is_flagged():
    pool = [_at_km(f"far-{km}", km) for km in (80, 100, 120, 150, 180)]
    payload = suggest(pool, _query(time_budget_minutes=30))

    assert payload["used_radius"]["fallback"] is True
    assert payload["used_radius"]["widened"] is True
    assert payload["note"].startswith("I had to widen the search")
    assert payload["top"]["why"][0] == payload["note"]
    assert payload["top"] is not None


def test_scenario_d_gem_penalises_mainstream_city():
    city = _at_km("big-city", 80, type="city", visibility="mainstream", beauty_score=0.95)
    gem = _at_km("small-cove", 80, direction=-1, type="village", tags=["sea"],
                 visibility="hidden-gem", beauty_score=0.9)

    gem_run = rank_places([city, gem], _query(style=Style.GEM))
    mainstream_run = rank_places([city, gem], _query(style=Style.MAINSTREAM))

    assert gem_run.ranked[0].place.id == "small-cove"
    assert mainstream_run.ranked[0].place.id == "big-city"
    gem_scores = {c.place.id: c.score for c in gem_run.ranked}
    main_scores = {c.place.id: c.score for c in mainstream_run.ranked}
    assert main_scores["big-city"] - gem_scores["big-city"] == pytest.approx(0.10)


def test_scenario_e_malformed_record_is_dropped():
    pool = [_at_km(f"ok-{i}", 30 + 10 * i) for i in range(5)]
    pool.insert(2, {"id": "broken", "name": "Broken", "lon": 13.4})

    payload = suggest(pool, _query())

    assert payload["ok"] is True
    assert payload["debug"]["pool_size"] == 6
    assert payload["debug"]["eligible"] == 5
    assert payload["debug"]["rejections"] == {"invalid_record": 1}
    assert payload["top"]["id"].startswith("ok-")


def test_empty_pool_is_not_an_error():
    payload = suggest([], _query())
    assert payload["ok"] is True
    assert payload["top"] is None
    assert payload["message"]


def test_primary_region_boost_breaks_ties():
    neighbour = _at_km("lazio-cove", 55, direction=-1, type="village", tags=["coastal"],
                       beauty_score=0.8, region="Lazio")
    local = dict(COASTAL, region="Abruzzo")

    payload = suggest([neighbour, local], _query(), region="Abruzzo")

    assert payload["top"]["id"] == "adriatic-cove"
    assert payload["top"]["score"] - payload["alternatives"][0]["score"] == pytest.approx(0.08, abs=0.002)
    assert payload["input"]["primary_region"] == "Abruzzo"
    assert payload["debug"]["primary_region"] == "Abruzzo"
    assert payload["debug"]["in_region"] == 1


def test_enough_primary_region_candidates_leave_neighbours_out():
    local = [_at_km(f"local-{km}", km, region="Abruzzo") for km in range(20, 52, 4)]
    neighbour = _at_km("neighbour", 30, direction=-1, region="Lazio")

    run = rank_places(local + [neighbour], _query(primary_region="Abruzzo"))

    selected = [c.place.id for c in run.selection.candidates]
    assert len(selected) == 8
    assert "neighbour" not in selected


def test_thin_primary_region_adds_neighbours():
    local = [_at_km(f"local-{km}", km, region="Abruzzo") for km in (20, 40)]
    neighbours = [_at_km(f"near-{km}", km, direction=-1, area="Molise") for km in (25, 35, 45)]

    run = rank_places(local + neighbours, _query(primary_region="abruzzo"))

    selected = [c.place.id for c in run.selection.candidates]
    assert selected[:2] == ["local-20", "local-40"]
    assert sorted(selected[2:]) == ["near-25", "near-35", "near-45"]
    assert {c.place.id for c in run.ranked if c.in_region} == {"local-20", "local-40"}


def test_query_region_wins_over_dataset_region():
    place = _at_km("roman-villa", 40, region="Lazio")
    payload = suggest([place], _query(primary_region="Lazio"), region="Abruzzo")
    assert payload["debug"]["primary_region"] == "Lazio"
    assert payload["debug"]["in_region"] == 1
