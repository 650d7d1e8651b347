import math

import pytest

from fieldroute.services.geospatial import EARTH_RADIUS_M, haversine_m


def test_haversine_zero_for_coincident_points():
    assert haversine_m((41.0082, 28.9784), (41.0082, 28.9784)) == 0.0


def test_haversine_is_symmetric():
    a, b = (41.0082, 28.9784), (39.9334, 32.8597)
    assert haversine_m(a, b) == haversine_m(b, a)


def test_haversine_one_degree_of_longitude_on_equator():
    expected = EARTH_RADIUS_M * math.radians(1.0)
    assert haversine_m((0.0, 0.0), (0.0, 1.0)) == pytest.approx(expected)


def test_haversine_known_city_pair():
    # Istanbul -> Ankara is roughly 350 km as the crow flies
    distance = haversine_m((41.0082, 28.9784), (39.9334, 32.8597))
    assert 340_000 < distance < 360_000


def test_haversine_antipodal_points_do_not_fail():
    assert haversine_m((0.0, 0.0), (0.0, 180.0)) == pytest.approx(math.pi * EARTH_RADIUS_M)


def test_haversine_triangle_inequality():
    a, b, c = (41.0, 29.0), (41.2, 29.3), (40.9, 29.5)
    assert haversine_m(a, c) <= haversine_m(a, b) + haversine_m(b, c)


@pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
def test_haversine_non_finite_input_propagates_as_nan(bad):
    assert math.isnan(haversine_m((bad, 0.0), (1.0, 1.0)))
