import math

import pytest

from src.dispatch.models.domain import Coordinate
from src.dispatch.services.geospatial import haversine_km, round_distance_km, route_distance


def test_haversine_zero_for_same_point() -> None:
    assert haversine_km(14.5995, 120.9842, 14.5995, 120.9842) == 0.0


def test_haversine_is_symmetric() -> None:
    forward = haversine_km(14.5995, 120.9842, 14.5547, 121.0244)
    backward = haversine_km(14.5547, 121.0244, 14.5995, 120.9842)
    assert forward == pytest.approx(backward)


def test_one_degree_of_latitude_is_about_111_km() -> None:
    assert haversine_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(111.19, abs=0.01)


def test_antipodal_points_do_not_raise() -> None:
    assert haversine_km(0.0, 0.0, 0.0, 180.0) == pytest.approx(math.pi * 6371.0)


def test_route_distance_sums_legs_in_order() -> None:
    pickup = Coordinate(0.0, 0.0)
    stops = [Coordinate(1.0, 0.0), Coordinate(1.0, 1.0), Coordinate(0.0, 1.0)]

    route = route_distance(pickup, stops)

    assert len(route.segments_km) == 3
    assert route.segments_km[0] == pytest.approx(haversine_km(0.0, 0.0, 1.0, 0.0))
    assert route.total_km == pytest.approx(sum(route.segments_km))


def test_route_distance_without_stops_is_zero() -> None:
    route = route_distance(Coordinate(0.0, 0.0), [])
    assert route.total_km == 0
    assert route.segments_km == []


@pytest.mark.parametrize(
    ("value", "expected"),
    [(5.25, 5.3), (5.24, 5.2), (0.05, 0.1), (12.0, 12.0)],
)
def test_round_distance_half_up(value: float, expected: float) -> None:
    assert round_distance_km(value) == expected
