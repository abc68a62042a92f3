"""Domain models for coordinates, stops and computed routes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True, slots=True)
class Coordinate:
    """A WGS84 point in decimal degrees."""

    latitude: float
    longitude: float

    def as_param(self) -> str:
        return f"{self.latitude},{self.longitude}"


@dataclass(frozen=True, slots=True)
class Stop:
    """A delivery stop supplied by the caller."""

    coordinate: Coordinate
    name: str
    address: str = ""


@dataclass(frozen=True, slots=True)
class StepInstruction:
    text: str
    distance_meters: int


@dataclass(frozen=True, slots=True)
class Leg:
    """One provider segment between two consecutive route points."""

    distance_meters: int
    duration_seconds: int
    duration_in_traffic_seconds: int
    polyline: Tuple[Coordinate, ...] = ()
    steps: Tuple[StepInstruction, ...] = ()


@dataclass(frozen=True, slots=True)
class Waypoint:
    coordinate: Coordinate
    name: str
    address: str
    visit_order: int


@dataclass(frozen=True, slots=True)
class RouteInfo:
    """Aggregated multi-stop itinerary returned to the caller."""

    coordinates: Tuple[Coordinate, ...]
    steps: Tuple[StepInstruction, ...]
    total_distance_meters: int
    total_duration_seconds: int
    total_duration_in_traffic_seconds: int
    has_traffic_delay: bool
    traffic_delay_seconds: int
    color_tag: str
    waypoints: Tuple[Waypoint, ...]
    next_leg_distance_meters: int
    next_leg_duration_seconds: int
    next_leg_duration_in_traffic_seconds: int


@dataclass(frozen=True, slots=True)
class AlternativeRoute:
    """Whole-route alternative used for ranking; never merged with others."""

    coordinates: Tuple[Coordinate, ...]
    steps: Tuple[StepInstruction, ...]
    total_distance_meters: int
    total_duration_seconds: int
    total_duration_in_traffic_seconds: int
    has_traffic_delay: bool
    traffic_delay_seconds: int
    color_tag: str
    summary: str = ""

    @property
    def step_count(self) -> int:
        return len(self.steps)


@dataclass(frozen=True, slots=True)
class StopOrderRequest:
    origin: Coordinate
    stops: Tuple[Stop, ...]
    return_to_origin: bool = False


@dataclass(frozen=True, slots=True)
class ProviderRoute:
    """A single route as parsed from the directions provider response."""

    summary: str
    overview_coordinates: Tuple[Coordinate, ...]
    legs: Tuple[Leg, ...]
    waypoint_order: Optional[Tuple[int, ...]] = None
    warnings: Tuple[str, ...] = field(default_factory=tuple)
