import math

import pytest

from chenda.errors import InvalidArgumentError
from chenda.geo import haversine_km


def test_same_point_is_zero():
    assert haversine_km((14.6, 121.0), (14.6, 121.0)) == 0.0


def test_known_distance_manila_to_quezon_city():
    # roughly 10-11 km between the two city centres
    d = haversine_km((14.5995, 120.9842), (14.6760, 121.0437))
    assert 9.5 < d < 11.5


def test_one_degree_of_latitude():
    assert haversine_km((0, 0), (1, 0)) == pytest.approx(111.19, abs=0.01)
    assert haversine_km((0, 0), (1, 0), decimals=1) == 111.2


def test_symmetric():
    a, b = (10.3157, 123.8854), (7.1907, 125.4553)
    assert haversine_km(a, b) == pytest.approx(haversine_km(b, a))


@pytest.mark.parametrize("bad", [(91, 0), (-91, 0), (0, 181), (0, -180.5), ("x", 0), (1,)])
def test_rejects_bad_coordinates(bad):
    with pytest.raises(InvalidArgumentError):
        haversine_km(bad, (0, 0))


@pytest.mark.parametrize("lat", [-45.14, -0.74, 0.0, 30.0, 89.9])
def test_antipodal_points_give_half_circumference(lat):
    d = haversine_km((lat, 10.0), (-lat, -170.0))
    assert d == pytest.approx(math.pi * 6371.0, abs=0.01)
