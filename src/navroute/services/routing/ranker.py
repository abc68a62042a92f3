"""Ranking and coloring of whole-route alternatives."""

from __future__ import annotations

from enum import Enum
from typing import Sequence

from ...config import settings
from ...models.domain import AlternativeRoute
from .errors import InvalidInput


class RoutePreference(str, Enum):
    FASTEST = "fastest"
    SHORTEST = "shortest"
    # More steps is used as a proxy for a more local route.
    SCENIC = "scenic"


def color_for_index(index: int) -> str:
    palette = settings.route_colors
    return palette[index % len(palette)]


def parse_preference(value: str | RoutePreference | None) -> RoutePreference | None:
    if value is None or isinstance(value, RoutePreference):
        return value
    normalized = value.strip().lower()
    if not normalized or normalized == "none":
        return None
    try:
        return RoutePreference(normalized)
    except ValueError as exc:
        raise InvalidInput(f"Unknown route preference '{value}'.") from exc


def rank_routes(
    routes: Sequence[AlternativeRoute],
    preference: RoutePreference | str | None = None,
) -> list[AlternativeRoute]:
    """Sort alternatives by preference; ties keep provider order."""
    preference = parse_preference(preference)
    if preference is RoutePreference.FASTEST:
        return sorted(routes, key=lambda route: route.total_duration_in_traffic_seconds)
    if preference is RoutePreference.SHORTEST:
        return sorted(routes, key=lambda route: route.total_distance_meters)
    if preference is RoutePreference.SCENIC:
        return sorted(routes, key=lambda route: route.step_count, reverse=True)
    return list(routes)
