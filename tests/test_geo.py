import math

import pytest

from jamo.geo import EARTH_RADIUS_KM, haversine_km, is_finite_coord, to_float


def test_haversine_zero_for_same_point():
    assert haversine_km(42.35, 13.40, 42.35, 13.40) == 0.0


def test_haversine_is_symmetric():
    a = haversine_km(42.35, 13.40, 41.90, 12.50)
    b = haversine_km(41.90, 12.50, 42.35, 13.40)
    assert a == pytest.approx(b)


def test_haversine_one_degree_of_latitude():
    assert haversine_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(111.19, abs=0.05)


def test_haversine_antipodal_points_do_not_fail():
    assert haversine_km(0.0, 0.0, 0.0, 180.0) == pytest.approx(math.pi * EARTH_RADIUS_KM)


def test_to_float_rejects_non_numeric():
    assert math.isnan(to_float(None))
    assert math.isnan(to_float(True))
    assert math.isnan(to_float("abc"))
    assert to_float("12.5") == 12.5


def test_is_finite_coord():
    assert is_finite_coord("42.3", 13)
    assert not is_finite_coord(91, 0)
    assert not is_finite_coord(0, 181)
    assert not is_finite_coord(float("nan"), 0)
    assert not is_finite_coord(None, 0)
