"""Routing request/response schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from ..models.domain import Coordinate, Stop


class CoordinateModel(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    def to_domain(self) -> Coordinate:
        return Coordinate(latitude=self.latitude, longitude=self.longitude)


class StopModel(CoordinateModel):
    name: str
    address: str = ""

    def to_stop(self) -> Stop:
        return Stop(coordinate=self.to_domain(), name=self.name, address=self.address)


class DeliveryRouteRequest(BaseModel):
    origin: CoordinateModel
    stops: List[StopModel] = Field(default_factory=list)
    return_to_origin: bool = Field(
        default=False,
        description="If True, the route ends back at the origin; otherwise at the last stop.",
    )


class StopOrderResponse(BaseModel):
    order: List[int]


class StepModel(BaseModel):
    text: str
    distance_meters: int


class WaypointModel(BaseModel):
    latitude: float
    longitude: float
    name: str
    address: str
    visit_order: int


class RouteInfoModel(BaseModel):
    polyline: str
    coordinates: List[CoordinateModel]
    steps: List[StepModel]
    total_distance_meters: int
    total_duration_seconds: int
    total_duration_in_traffic_seconds: int
    total_distance_km: float
    total_duration_min: int
    total_duration_in_traffic_min: int
    has_traffic_delay: bool
    traffic_delay_seconds: int
    traffic_delay_min: int
    color_tag: str
    waypoints: List[WaypointModel]
    next_leg_distance_meters: int
    next_leg_duration_seconds: int
    next_leg_duration_in_traffic_seconds: int
    next_leg_distance_km: float
    next_leg_duration_min: int


class DeliveryRouteResponse(BaseModel):
    order: List[int]
    route: Optional[RouteInfoModel] = None


class AlternativesRequest(BaseModel):
    origin: CoordinateModel
    destination: Optional[CoordinateModel] = None
    destination_query: Optional[str] = Field(
        default=None,
        description="Free-text destination, geocoded when no coordinate is given.",
    )
    preference: Optional[str] = Field(default=None, description="fastest, shortest or scenic.")

    @model_validator(mode="after")
    def _require_destination(self) -> "AlternativesRequest":
        if self.destination is None and not (self.destination_query or "").strip():
            raise ValueError("Either destination or destination_query is required.")
        return self


class AlternativeRouteModel(BaseModel):
    summary: str
    color_tag: str
    polyline: str
    coordinates: List[CoordinateModel]
    step_count: int
    total_distance_meters: int
    total_duration_seconds: int
    total_duration_in_traffic_seconds: int
    total_distance_km: float
    total_duration_min: int
    total_duration_in_traffic_min: int
    has_traffic_delay: bool
    traffic_delay_seconds: int


class AlternativesResponse(BaseModel):
    preference: Optional[str] = None
    destination: CoordinateModel
    routes: List[AlternativeRouteModel]
