"""Serializers and display conversions for routing outputs."""

from __future__ import annotations

import math
from dataclasses import asdict

from ...models.domain import AlternativeRoute, Coordinate, RouteInfo
from ..routing.directions_client import encode_polyline


def meters_to_km(meters: float) -> float:
    """Kilometers rounded half-up to one decimal place."""
    return math.floor(meters / 100 + 0.5) / 10


def seconds_to_minutes(seconds: float) -> int:
    """Whole minutes rounded half-up."""
    return int(math.floor(seconds / 60 + 0.5))


def _coordinates_to_json(coordinates: tuple[Coordinate, ...]) -> list[dict]:
    return [{"latitude": point.latitude, "longitude": point.longitude} for point in coordinates]


def route_info_to_json(route: RouteInfo) -> dict:
    return {
        "polyline": encode_polyline(route.coordinates),
        "coordinates": _coordinates_to_json(route.coordinates),
        "steps": [asdict(step) for step in route.steps],
        "total_distance_meters": route.total_distance_meters,
        "total_duration_seconds": route.total_duration_seconds,
        "total_duration_in_traffic_seconds": route.total_duration_in_traffic_seconds,
        "total_distance_km": meters_to_km(route.total_distance_meters),
        "total_duration_min": seconds_to_minutes(route.total_duration_seconds),
        "total_duration_in_traffic_min": seconds_to_minutes(route.total_duration_in_traffic_seconds),
        "has_traffic_delay": route.has_traffic_delay,
        "traffic_delay_seconds": route.traffic_delay_seconds,
        "traffic_delay_min": seconds_to_minutes(route.traffic_delay_seconds),
        "color_tag": route.color_tag,
        "waypoints": [
            {
                "latitude": waypoint.coordinate.latitude,
                "longitude": waypoint.coordinate.longitude,
                "name": waypoint.name,
                "address": waypoint.address,
                "visit_order": waypoint.visit_order,
            }
            for waypoint in route.waypoints
        ],
        "next_leg_distance_meters": route.next_leg_distance_meters,
        "next_leg_duration_seconds": route.next_leg_duration_seconds,
        "next_leg_duration_in_traffic_seconds": route.next_leg_duration_in_traffic_seconds,
        "next_leg_distance_km": meters_to_km(route.next_leg_distance_meters),
        "next_leg_duration_min": seconds_to_minutes(route.next_leg_duration_seconds),
    }


def alternative_route_to_json(route: AlternativeRoute) -> dict:
    return {
        "summary": route.summary,
        "color_tag": route.color_tag,
        "polyline": encode_polyline(route.coordinates),
        "coordinates": _coordinates_to_json(route.coordinates),
        "step_count": route.step_count,
        "total_distance_meters": route.total_distance_meters,
        "total_duration_seconds": route.total_duration_seconds,
        "total_duration_in_traffic_seconds": route.total_duration_in_traffic_seconds,
        "total_distance_km": meters_to_km(route.total_distance_meters),
        "total_duration_min": seconds_to_minutes(route.total_duration_seconds),
        "total_duration_in_traffic_min": seconds_to_minutes(route.total_duration_in_traffic_seconds),
        "has_traffic_delay": route.has_traffic_delay,
        "traffic_delay_seconds": route.traffic_delay_seconds,
    }
