import math

from navroute.models.domain import Coordinate
from navroute.services.geospatial import distance_meters, haversine_m, is_valid_coordinate


def test_distance_is_zero_for_identical_points():
    point = Coordinate(48.8566, 2.3522)
    assert distance_meters(point, point) == 0.0
    assert distance_meters(point, Coordinate(48.8566, 2.3522)) == 0.0


def test_distance_is_symmetric():
    paris = Coordinate(48.8566, 2.3522)
    berlin = Coordinate(52.52, 13.405)
    assert distance_meters(paris, berlin) == distance_meters(berlin, paris)


def test_one_degree_of_latitude():
    expected = 6_371_000.0 * math.pi / 180
    assert abs(haversine_m(0.0, 0.0, 1.0, 0.0) - expected) < 1e-6
    assert abs(distance_meters(Coordinate(10.0, 5.0), Coordinate(11.0, 5.0)) - expected) < 1e-6


def test_is_valid_coordinate():
    assert is_valid_coordinate(Coordinate(90.0, -180.0))
    assert not is_valid_coordinate(Coordinate(90.5, 0.0))
    assert not is_valid_coordinate(Coordinate(0.0, 181.0))
    assert not is_valid_coordinate(Coordinate(float("nan"), 0.0))
