"""Fold provider legs for an ordered stop list into a single itinerary."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Sequence

from ...models.domain import Coordinate, Leg, RouteInfo, StepInstruction, Stop, Waypoint
from .errors import EmptyResult, RouteUnavailable, RoutingError
from .ranker import color_for_index

logger = logging.getLogger(__name__)

FetchDirections = Callable[[Sequence[Coordinate]], Awaitable[Sequence[Leg]]]


def build_waypoint_sequence(
    origin: Coordinate, ordered_stops: Sequence[Stop], return_to_origin: bool
) -> list[Coordinate]:
    sequence = [origin, *(stop.coordinate for stop in ordered_stops)]
    if return_to_origin:
        sequence.append(origin)
    return sequence


def _merge_polylines(legs: Sequence[Leg]) -> tuple[Coordinate, ...]:
    merged: list[Coordinate] = []
    for leg in legs:
        points = list(leg.polyline)
        if merged and points and merged[-1] == points[0]:
            points = points[1:]
        merged.extend(points)
    return tuple(merged)


def aggregate_legs(
    legs: Sequence[Leg],
    ordered_stops: Sequence[Stop],
    *,
    color_tag: str,
) -> RouteInfo:
    """Build a ``RouteInfo`` from exactly the legs that belong to the route."""
    if not legs:
        raise EmptyResult("No legs to aggregate.")

    total_distance = sum(leg.distance_meters for leg in legs)
    total_duration = sum(leg.duration_seconds for leg in legs)
    total_in_traffic = sum(leg.duration_in_traffic_seconds for leg in legs)
    steps: list[StepInstruction] = []
    for leg in legs:
        steps.extend(leg.steps)

    first = legs[0]
    waypoints = tuple(
        Waypoint(
            coordinate=stop.coordinate,
            name=stop.name,
            address=stop.address,
            visit_order=position,
        )
        for position, stop in enumerate(ordered_stops, start=1)
    )
    return RouteInfo(
        coordinates=_merge_polylines(legs),
        steps=tuple(steps),
        total_distance_meters=total_distance,
        total_duration_seconds=total_duration,
        total_duration_in_traffic_seconds=total_in_traffic,
        has_traffic_delay=total_in_traffic > total_duration,
        traffic_delay_seconds=max(0, total_in_traffic - total_duration),
        color_tag=color_tag,
        waypoints=waypoints,
        next_leg_distance_meters=first.distance_meters,
        next_leg_duration_seconds=first.duration_seconds,
        next_leg_duration_in_traffic_seconds=first.duration_in_traffic_seconds,
    )


async def build_optimized_route(
    origin: Coordinate,
    ordered_stops: Sequence[Stop],
    return_to_origin: bool,
    fetch_directions: FetchDirections,
    *,
    color_tag: str | None = None,
) -> RouteInfo:
    """Request one driving route for the stop sequence and aggregate its legs.

    The provider is called once with ``origin, *stops`` (plus ``origin`` again when
    returning). Totals include only the ``len(waypoints) - 1`` legs that sequence
    implies; surplus trailing legs are dropped and a short answer raises
    ``EmptyResult``. Provider failures propagate as ``RouteUnavailable``.
    """
    if not ordered_stops:
        raise EmptyResult("Cannot build a route without stops.")

    waypoints = build_waypoint_sequence(origin, ordered_stops, return_to_origin)
    expected_legs = len(waypoints) - 1
    try:
        legs = list(await fetch_directions(waypoints))
    except RoutingError:
        raise
    except Exception as exc:
        logger.warning(f"Directions request for {len(waypoints)} waypoints failed: {exc}")
        raise RouteUnavailable(f"Directions request failed: {exc}") from exc

    if len(legs) < expected_legs:
        raise EmptyResult(
            f"Directions provider returned {len(legs)} legs for {len(waypoints)} waypoints "
            f"(expected {expected_legs})."
        )
    if len(legs) > expected_legs:
        logger.warning(
            f"Ignoring {len(legs) - expected_legs} surplus legs "
            f"(return_to_origin={return_to_origin})"
        )
        legs = legs[:expected_legs]

    route = aggregate_legs(
        legs,
        ordered_stops,
        color_tag=color_tag if color_tag is not None else color_for_index(0),
    )
    logger.info(
        f"Built route through {len(ordered_stops)} stops: "
        f"{route.total_distance_meters} m, {route.total_duration_in_traffic_seconds} s in traffic"
    )
    return route
