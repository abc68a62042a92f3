"""Routing orchestration service."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Optional, Sequence, TypeVar

from ...models.domain import AlternativeRoute, Coordinate, ProviderRoute, RouteInfo, Stop, StopOrderRequest
from ...schemas.routing import (
    AlternativesRequest,
    AlternativesResponse,
    DeliveryRouteRequest,
    DeliveryRouteResponse,
    StopOrderResponse,
)
from ..geospatial import is_valid_coordinate
from ..outputs.routing_formatter import alternative_route_to_json, route_info_to_json
from .aggregator import FetchDirections, build_optimized_route
from .directions_client import DirectionsClient
from .errors import InvalidInput
from .optimizer import optimize_order
from .ranker import RoutePreference, color_for_index, parse_preference, rank_routes

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _validate_request(request: StopOrderRequest) -> None:
    if not is_valid_coordinate(request.origin):
        raise InvalidInput(f"Origin coordinate out of range: {request.origin}.")
    for index, stop in enumerate(request.stops):
        if not is_valid_coordinate(stop.coordinate):
            raise InvalidInput(f"Stop {index} ('{stop.name}') has an invalid coordinate: {stop.coordinate}.")


async def compute_delivery_route(
    origin: Coordinate,
    stops: Sequence[Stop],
    return_to_origin: bool,
    fetch_directions: FetchDirections,
) -> Optional[RouteInfo]:
    """Optimize the stop order, then fetch and aggregate the driving route.

    Returns ``None`` for an empty stop list without contacting the provider.
    """
    request = StopOrderRequest(origin=origin, stops=tuple(stops), return_to_origin=return_to_origin)
    _validate_request(request)
    order = optimize_order(request)
    if not order:
        return None
    ordered_stops = [request.stops[index] for index in order]
    return await build_optimized_route(origin, ordered_stops, return_to_origin, fetch_directions)


def provider_route_to_alternative(route: ProviderRoute, color_tag: str) -> AlternativeRoute:
    duration = sum(leg.duration_seconds for leg in route.legs)
    in_traffic = sum(leg.duration_in_traffic_seconds for leg in route.legs)
    steps = tuple(step for leg in route.legs for step in leg.steps)
    return AlternativeRoute(
        coordinates=route.overview_coordinates,
        steps=steps,
        total_distance_meters=sum(leg.distance_meters for leg in route.legs),
        total_duration_seconds=duration,
        total_duration_in_traffic_seconds=in_traffic,
        has_traffic_delay=in_traffic > duration,
        traffic_delay_seconds=max(0, in_traffic - duration),
        color_tag=color_tag,
        summary=route.summary,
    )


def compare_alternatives(
    raw_routes: Sequence[ProviderRoute],
    preference: RoutePreference | str | None = None,
) -> list[AlternativeRoute]:
    """Color provider routes by their original position, then rank them."""
    alternatives = [
        provider_route_to_alternative(route, color_for_index(index))
        for index, route in enumerate(raw_routes)
    ]
    return rank_routes(alternatives, preference)


class RouteRequestTracker(Generic[T]):
    """Drops results of superseded requests.

    Every call to ``run`` takes the next sequence number. Only the result of the
    latest issued request is returned; older ones resolve to ``None``. Starting a new
    request also cancels the previous in-flight task.
    """

    def __init__(self) -> None:
        self._sequence = 0
        self._inflight: asyncio.Task | None = None

    @property
    def latest(self) -> int:
        return self._sequence

    def issue(self) -> int:
        self._sequence += 1
        return self._sequence

    def is_current(self, sequence: int) -> bool:
        return sequence == self._sequence

    def cancel_inflight(self) -> None:
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        self._inflight = None

    async def run(self, operation: Callable[[], Awaitable[T]]) -> Optional[T]:
        sequence = self.issue()
        self.cancel_inflight()
        task = asyncio.ensure_future(operation())
        self._inflight = task
        try:
            result = await task
        except asyncio.CancelledError:
            if self.is_current(sequence):
                raise
            logger.debug(f"Route request {sequence} cancelled (latest is {self._sequence})")
            return None
        finally:
            if self._inflight is task:
                self._inflight = None
        if not self.is_current(sequence):
            logger.debug(f"Dropping stale route response {sequence} (latest is {self._sequence})")
            return None
        return result


def _directions_client() -> DirectionsClient:
    try:
        return DirectionsClient()
    except ValueError as e:
        logging.error(f"Directions client initialization failed: {e}")
        raise ValueError("Directions service is not configured. Please check NAVROUTE_GOOGLE_MAPS_API_KEY setting.") from e


def _stop_order_request(payload: DeliveryRouteRequest) -> StopOrderRequest:
    return StopOrderRequest(
        origin=payload.origin.to_domain(),
        stops=tuple(stop.to_stop() for stop in payload.stops),
        return_to_origin=payload.return_to_origin,
    )


def order_stops(payload: DeliveryRouteRequest) -> StopOrderResponse:
    request = _stop_order_request(payload)
    _validate_request(request)
    return StopOrderResponse(order=optimize_order(request))


async def optimize_delivery(payload: DeliveryRouteRequest) -> DeliveryRouteResponse:
    request = _stop_order_request(payload)
    _validate_request(request)
    order = optimize_order(request)
    if not order:
        return DeliveryRouteResponse(order=[], route=None)

    client = _directions_client()

    ordered_stops = [request.stops[index] for index in order]
    route = await build_optimized_route(
        request.origin, ordered_stops, request.return_to_origin, client.fetch_legs
    )
    return DeliveryRouteResponse.model_validate({"order": order, "route": route_info_to_json(route)})


async def find_alternatives(payload: AlternativesRequest) -> AlternativesResponse:
    preference = parse_preference(payload.preference)
    client = _directions_client()

    origin = payload.origin.to_domain()
    if payload.destination is not None:
        destination = payload.destination.to_domain()
    else:
        destination = await client.geocode(payload.destination_query or "")
        logger.info(f"Geocoded '{payload.destination_query}' to {destination.as_param()}")

    raw_routes = await client.directions(origin, destination, alternatives=True)
    ranked = compare_alternatives(raw_routes, preference)
    return AlternativesResponse.model_validate(
        {
            "preference": preference.value if preference else None,
            "destination": {"latitude": destination.latitude, "longitude": destination.longitude},
            "routes": [alternative_route_to_json(route) for route in ranked],
        }
    )
