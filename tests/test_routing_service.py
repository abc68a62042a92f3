import asyncio

import pytest

from navroute.models.domain import Coordinate, Leg, ProviderRoute, StepInstruction, Stop
from navroute.schemas.routing import AlternativesRequest, DeliveryRouteRequest
from navroute.services.routing import service as routing_service
from navroute.services.routing.errors import InvalidInput
from navroute.services.routing.ranker import color_for_index

ORIGIN = Coordinate(0.0, 0.0)
STOPS = [
    Stop(coordinate=Coordinate(0.0, 0.02), name="far east"),
    Stop(coordinate=Coordinate(0.0, 0.01), name="near east"),
    Stop(coordinate=Coordinate(0.015, 0.0), name="north"),
]


def _leg(distance: int, duration: int, in_traffic: int | None = None, steps: int = 1) -> Leg:
    return Leg(
        distance_meters=distance,
        duration_seconds=duration,
        duration_in_traffic_seconds=duration if in_traffic is None else in_traffic,
        steps=tuple(StepInstruction(text="Continue", distance_meters=distance) for _ in range(steps)),
    )


class DummyDirections:
    def __init__(self, routes=None):
        self.waypoint_calls = []
        self.geocoded = []
        self.routes = routes or []

    async def fetch_legs(self, waypoints):
        self.waypoint_calls.append(list(waypoints))
        return [_leg(1000, 60, 75) for _ in range(len(waypoints) - 1)]

    async def geocode(self, query):
        self.geocoded.append(query)
        return Coordinate(0.5, 0.5)

    async def directions(self, origin, destination, waypoints=(), **kwargs):
        assert kwargs.get("alternatives") is True
        return self.routes


def test_compute_delivery_route_visits_stops_in_optimized_order():
    dummy = DummyDirections()

    route = asyncio.run(routing_service.compute_delivery_route(ORIGIN, STOPS, False, dummy.fetch_legs))

    assert [waypoint.name for waypoint in route.waypoints] == ["near east", "far east", "north"]
    assert dummy.waypoint_calls[0] == [ORIGIN, STOPS[1].coordinate, STOPS[0].coordinate, STOPS[2].coordinate]
    assert route.total_distance_meters == 3000
    assert route.has_traffic_delay is True
    assert route.traffic_delay_seconds == 45


def test_compute_delivery_route_without_stops_skips_provider():
    dummy = DummyDirections()

    assert asyncio.run(routing_service.compute_delivery_route(ORIGIN, [], True, dummy.fetch_legs)) is None
    assert dummy.waypoint_calls == []


def test_compute_delivery_route_rejects_invalid_coordinates():
    dummy = DummyDirections()
    stops = [Stop(coordinate=Coordinate(95.0, 0.0), name="nowhere")]

    with pytest.raises(InvalidInput):
        asyncio.run(routing_service.compute_delivery_route(ORIGIN, stops, False, dummy.fetch_legs))
    assert dummy.waypoint_calls == []


def _provider_route(summary: str, duration: int, distance: int = 1000) -> ProviderRoute:
    return ProviderRoute(summary=summary, overview_coordinates=(), legs=(_leg(distance, duration),))


def test_compare_alternatives_colors_by_provider_position():
    routes = [_provider_route("A", 500), _provider_route("B", 300), _provider_route("C", 300)]

    ranked = routing_service.compare_alternatives(routes, "fastest")

    assert [route.summary for route in ranked] == ["B", "C", "A"]
    assert [route.color_tag for route in ranked] == [color_for_index(1), color_for_index(2), color_for_index(0)]


def test_tracker_cancels_superseded_request():
    async def scenario():
        tracker = routing_service.RouteRequestTracker()
        gate = asyncio.Event()

        async def slow():
            await gate.wait()
            return "old"

        async def fast():
            return "new"

        first = asyncio.create_task(tracker.run(slow))
        await asyncio.sleep(0)
        second = await tracker.run(fast)
        gate.set()
        return await first, second, tracker.latest

    assert asyncio.run(scenario()) == (None, "new", 2)


def test_tracker_drops_stale_response():
    async def scenario():
        tracker = routing_service.RouteRequestTracker()

        async def superseded_while_running():
            tracker.issue()
            return "stale"

        async def current():
            return "fresh"

        return await tracker.run(superseded_while_running), await tracker.run(current)

    assert asyncio.run(scenario()) == (None, "fresh")


def test_optimize_delivery_uses_directions_client(monkeypatch):
    dummy = DummyDirections()
    monkeypatch.setattr(routing_service, "DirectionsClient", lambda: dummy)

    payload = DeliveryRouteRequest.model_validate(
        {
            "origin": {"latitude": 0.0, "longitude": 0.0},
            "stops": [
                {"latitude": s.coordinate.latitude, "longitude": s.coordinate.longitude, "name": s.name}
                for s in STOPS
            ],
            "return_to_origin": True,
        }
    )
    response = asyncio.run(routing_service.optimize_delivery(payload))

    assert response.order == [1, 0, 2]
    assert response.route is not None
    assert response.route.total_distance_meters == 4000
    assert response.route.total_distance_km == 4.0
    assert response.route.total_duration_min == 4
    assert response.route.total_duration_in_traffic_min == 5
    assert len(dummy.waypoint_calls[0]) == 5


def test_find_alternatives_geocodes_query(monkeypatch):
    dummy = DummyDirections(routes=[_provider_route("A", 500, 900), _provider_route("B", 300, 1200)])
    monkeypatch.setattr(routing_service, "DirectionsClient", lambda: dummy)

    payload = AlternativesRequest(
        origin={"latitude": 0.0, "longitude": 0.0},
        destination_query="Central Station",
        preference="shortest",
    )
    response = asyncio.run(routing_service.find_alternatives(payload))

    assert dummy.geocoded == ["Central Station"]
    assert response.preference == "shortest"
    assert response.destination.latitude == 0.5
    assert [route.summary for route in response.routes] == ["A", "B"]
