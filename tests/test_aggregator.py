import asyncio

import pytest

from navroute.models.domain import Coordinate, Leg, StepInstruction, Stop
from navroute.services.outputs.routing_formatter import meters_to_km, route_info_to_json, seconds_to_minutes
from navroute.services.routing.aggregator import aggregate_legs, build_optimized_route
from navroute.services.routing.errors import EmptyResult, RouteUnavailable

ORIGIN = Coordinate(21.5, 39.2)
STOPS = [
    Stop(coordinate=Coordinate(21.51, 39.21), name="Bakery", address="1 King Rd"),
    Stop(coordinate=Coordinate(21.52, 39.22), name="Clinic", address=""),
]


def _leg(distance: int, duration: int, in_traffic: int | None = None, polyline=()) -> Leg:
    return Leg(
        distance_meters=distance,
        duration_seconds=duration,
        duration_in_traffic_seconds=duration if in_traffic is None else in_traffic,
        polyline=tuple(polyline),
        steps=(StepInstruction(text=f"Drive {distance} m", distance_meters=distance),),
    )


class RecordingDirections:
    def __init__(self, legs=None, extra_legs: int = 0):
        self.legs = legs
        self.extra_legs = extra_legs
        self.calls: list[list[Coordinate]] = []

    async def __call__(self, waypoints):
        self.calls.append(list(waypoints))
        if self.legs is not None:
            return self.legs
        return [_leg(1000, 60) for _ in range(len(waypoints) - 1 + self.extra_legs)]


def test_aggregation_sums_all_legs():
    fetch = RecordingDirections(legs=[_leg(1000, 60), _leg(2000, 120), _leg(1500, 90)])

    route = asyncio.run(build_optimized_route(ORIGIN, STOPS, True, fetch))

    assert route.total_distance_meters == 4500
    assert route.total_duration_seconds == 270
    assert route.total_duration_in_traffic_seconds == 270
    assert route.has_traffic_delay is False
    assert route.traffic_delay_seconds == 0


def test_traffic_delay_detection():
    fetch = RecordingDirections(legs=[_leg(1000, 60, 70), _leg(2000, 120, 130), _leg(1500, 90, 100)])

    route = asyncio.run(build_optimized_route(ORIGIN, STOPS, True, fetch))

    assert route.total_duration_in_traffic_seconds == 300
    assert route.has_traffic_delay is True
    assert route.traffic_delay_seconds == 30


def test_faster_traffic_estimate_floors_delay_at_zero():
    route = aggregate_legs([_leg(1000, 120, 100)], STOPS[:1], color_tag="#007AFF")
    assert route.has_traffic_delay is False
    assert route.traffic_delay_seconds == 0


@pytest.mark.parametrize("return_to_origin, waypoint_count, total", [(True, 4, 3000), (False, 3, 2000)])
def test_return_leg_accounting(return_to_origin, waypoint_count, total):
    fetch = RecordingDirections()

    route = asyncio.run(build_optimized_route(ORIGIN, STOPS, return_to_origin, fetch))

    assert len(fetch.calls) == 1
    waypoints = fetch.calls[0]
    assert len(waypoints) == waypoint_count
    assert waypoints[0] == ORIGIN
    assert waypoints[1:3] == [stop.coordinate for stop in STOPS]
    if return_to_origin:
        assert waypoints[-1] == ORIGIN
    assert route.total_distance_meters == total
    assert len(route.waypoints) == 2


def test_surplus_closing_leg_is_not_counted():
    fetch = RecordingDirections(extra_legs=1)

    route = asyncio.run(build_optimized_route(ORIGIN, STOPS, False, fetch))

    assert route.total_distance_meters == 2000
    assert route.total_duration_seconds == 120


def test_missing_legs_raise_empty_result():
    fetch = RecordingDirections(legs=[_leg(1000, 60)])

    with pytest.raises(EmptyResult):
        asyncio.run(build_optimized_route(ORIGIN, STOPS, True, fetch))


def test_provider_failure_propagates():
    async def failing(waypoints):
        raise RouteUnavailable("Directions request failed: OVER_QUERY_LIMIT", status="OVER_QUERY_LIMIT")

    with pytest.raises(RouteUnavailable) as excinfo:
        asyncio.run(build_optimized_route(ORIGIN, STOPS, False, failing))
    assert excinfo.value.status == "OVER_QUERY_LIMIT"


def test_unexpected_fetch_error_becomes_route_unavailable():
    async def failing(waypoints):
        raise ConnectionError("socket closed")

    with pytest.raises(RouteUnavailable) as excinfo:
        asyncio.run(build_optimized_route(ORIGIN, STOPS, False, failing))
    assert "socket closed" in excinfo.value.message
    assert isinstance(excinfo.value.__cause__, ConnectionError)


def test_next_leg_and_waypoints():
    fetch = RecordingDirections(legs=[_leg(800, 50, 65), _leg(1200, 100, 110)])

    route = asyncio.run(build_optimized_route(ORIGIN, STOPS, False, fetch))

    assert (route.next_leg_distance_meters, route.next_leg_duration_seconds) == (800, 50)
    assert route.next_leg_duration_in_traffic_seconds == 65
    assert [waypoint.visit_order for waypoint in route.waypoints] == [1, 2]
    assert [waypoint.name for waypoint in route.waypoints] == ["Bakery", "Clinic"]
    assert route.waypoints[0].address == "1 King Rd"
    assert len(route.steps) == 2


def test_polylines_are_joined_without_duplicate_points():
    a, b, c = Coordinate(21.5, 39.2), Coordinate(21.51, 39.21), Coordinate(21.52, 39.22)
    legs = [_leg(1000, 60, polyline=(a, b)), _leg(1000, 60, polyline=(b, c))]

    route = aggregate_legs(legs, STOPS, color_tag="#34C759")

    assert route.coordinates == (a, b, c)
    assert route.color_tag == "#34C759"


def test_display_conversions():
    assert meters_to_km(4500) == 4.5
    assert meters_to_km(1250) == 1.3
    assert meters_to_km(0) == 0.0
    assert seconds_to_minutes(270) == 5
    assert seconds_to_minutes(89) == 1
    assert seconds_to_minutes(90) == 2


def test_route_json_includes_display_fields():
    fetch = RecordingDirections(legs=[_leg(1000, 60), _leg(2000, 120), _leg(1500, 90)])
    route = asyncio.run(build_optimized_route(ORIGIN, STOPS, True, fetch))

    payload = route_info_to_json(route)

    assert payload["total_distance_km"] == 4.5
    assert payload["total_duration_min"] == 5
    assert payload["next_leg_distance_km"] == 1.0
    assert payload["waypoints"][1]["visit_order"] == 2
