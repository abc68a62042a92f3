"""HTTP client for the directions and geocoding web services."""

from __future__ import annotations

import asyncio
import html
import logging
import re
from typing import Any, Sequence

import httpx

from ...config import settings
from ...models.domain import Coordinate, Leg, ProviderRoute, StepInstruction
from .errors import EmptyResult, RouteUnavailable

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s+")


class DirectionsClient:
    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.directions_base_url).rstrip("/")
        self.api_key = api_key or settings.google_maps_api_key
        if not self.api_key:
            raise ValueError("Directions API key is not configured.")
        self.timeout = timeout if timeout is not None else settings.directions_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.directions_max_retries
        self.backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else settings.directions_backoff_seconds
        )
        self._transport = transport

    def _get_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            transport=self._transport,
        )

    async def _get_json(self, path: str, params: dict[str, str]) -> dict:
        """GET a provider endpoint, retrying transport failures and 5xx answers."""
        url = f"{self.base_url}/{path}"
        query = {**params, "key": self.api_key}
        async with self._get_client() as client:
            attempt = 0
            while True:
                try:
                    response = await client.get(url, params=query)
                    response.raise_for_status()
                    return response.json()
                except httpx.HTTPStatusError as e:
                    if e.response.status_code < 500:
                        raise RouteUnavailable(
                            f"Directions provider rejected the request (HTTP {e.response.status_code})",
                            status=str(e.response.status_code),
                        ) from e
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"Directions request failed after {self.max_retries} retries: {e}")
                        raise RouteUnavailable(
                            f"Directions provider error (HTTP {e.response.status_code})",
                            status=str(e.response.status_code),
                        ) from e
                    wait_time = self.backoff_seconds * attempt
                    logger.debug(f"Directions HTTP {e.response.status_code}, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                    await asyncio.sleep(wait_time)
                except httpx.TimeoutException as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"Directions request timed out after {self.max_retries} retries: {e}")
                        raise RouteUnavailable("Directions provider timed out") from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"Directions timeout, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                    await asyncio.sleep(wait_time)
                except (httpx.RequestError, OSError) as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise RouteUnavailable(
                            f"Failed to connect to directions provider at {self.base_url}: {e}"
                        ) from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"Directions network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {e}")
                    await asyncio.sleep(wait_time)
                except ValueError as e:
                    raise RouteUnavailable(f"Directions provider returned invalid JSON: {e}") from e

    async def directions(
        self,
        origin: Coordinate,
        destination: Coordinate,
        waypoints: Sequence[Coordinate] = (),
        *,
        optimize_waypoint_order: bool = False,
        alternatives: bool = False,
        departure_time: str | None = None,
    ) -> list[ProviderRoute]:
        """Request driving routes and parse every returned route.

        Raises ``RouteUnavailable`` for non-OK statuses and ``EmptyResult`` when the
        provider answers OK without routes.
        """
        params = {
            "origin": origin.as_param(),
            "destination": destination.as_param(),
            "mode": "driving",
            "alternatives": "true" if alternatives else "false",
            "departure_time": departure_time or settings.departure_time,
        }
        if waypoints:
            joined = "|".join(point.as_param() for point in waypoints)
            params["waypoints"] = f"optimize:true|{joined}" if optimize_waypoint_order else joined

        data = await self._get_json("directions/json", params)
        return parse_directions_response(data)

    async def fetch_legs(self, waypoints: Sequence[Coordinate]) -> list[Leg]:
        """Legs of the first route through ``waypoints`` in the given order."""
        if len(waypoints) < 2:
            raise ValueError("At least two waypoints are required for a route.")
        routes = await self.directions(waypoints[0], waypoints[-1], waypoints[1:-1])
        legs = list(routes[0].legs)
        if not legs:
            raise EmptyResult("Directions provider returned a route without legs.")
        return legs

    async def geocode(self, query: str) -> Coordinate:
        """Resolve a free-text place into a coordinate (first match)."""
        if not query.strip():
            raise ValueError("Geocoding query must not be empty.")
        data = await self._get_json("geocode/json", {"address": query.strip()})
        status = data.get("status")
        if status == "ZERO_RESULTS":
            raise EmptyResult(f"No geocoding results for '{query}'.", status=status)
        if status != "OK":
            raise RouteUnavailable(
                f"Geocoding failed: {data.get('error_message') or status}", status=status
            )
        results = data.get("results") or []
        if not results:
            raise EmptyResult(f"No geocoding results for '{query}'.", status=status)
        location = (results[0].get("geometry") or {}).get("location") or {}
        lat, lng = location.get("lat"), location.get("lng")
        if lat is None or lng is None:
            raise EmptyResult(f"Geocoding result for '{query}' has no location.", status=status)
        return Coordinate(latitude=float(lat), longitude=float(lng))


def _value(block: Any) -> int:
    if isinstance(block, dict):
        return int(block.get("value") or 0)
    return 0


def _strip_markup(text: str) -> str:
    return _SPACE_RE.sub(" ", html.unescape(_TAG_RE.sub(" ", text))).strip()


def parse_leg(raw: dict) -> Leg:
    duration = _value(raw.get("duration"))
    in_traffic = raw.get("duration_in_traffic")
    polyline: list[Coordinate] = []
    steps: list[StepInstruction] = []
    for step in raw.get("steps") or []:
        steps.append(
            StepInstruction(
                text=_strip_markup(step.get("html_instructions") or ""),
                distance_meters=_value(step.get("distance")),
            )
        )
        points = (step.get("polyline") or {}).get("points")
        if points:
            decoded = decode_polyline(points)
            if polyline and decoded and polyline[-1] == decoded[0]:
                decoded = decoded[1:]
            polyline.extend(decoded)
    return Leg(
        distance_meters=_value(raw.get("distance")),
        duration_seconds=duration,
        duration_in_traffic_seconds=_value(in_traffic) if in_traffic else duration,
        polyline=tuple(polyline),
        steps=tuple(steps),
    )


def parse_route(raw: dict) -> ProviderRoute:
    overview = (raw.get("overview_polyline") or {}).get("points") or ""
    waypoint_order = raw.get("waypoint_order")
    return ProviderRoute(
        summary=raw.get("summary") or "",
        overview_coordinates=tuple(decode_polyline(overview)),
        legs=tuple(parse_leg(leg) for leg in raw.get("legs") or []),
        waypoint_order=tuple(int(i) for i in waypoint_order) if waypoint_order is not None else None,
        warnings=tuple(raw.get("warnings") or ()),
    )


def parse_directions_response(data: dict) -> list[ProviderRoute]:
    status = data.get("status")
    if status != "OK":
        message = data.get("error_message") or status or "missing status"
        logger.warning(f"Directions provider returned status {status}: {message}")
        raise RouteUnavailable(f"Directions request failed: {message}", status=status)
    routes = data.get("routes") or []
    if not routes:
        raise EmptyResult("Directions provider returned no routes.", status=status)
    return [parse_route(route) for route in routes]


def _decode_value(encoded: str, index: int) -> tuple[int, int]:
    shift = 0
    result = 0
    while True:
        b = ord(encoded[index]) - 63
        index += 1
        result |= (b & 0x1F) << shift
        shift += 5
        if b < 0x20:
            break
    return (~(result >> 1) if (result & 1) else (result >> 1)), index


def decode_polyline(polyline: str) -> list[Coordinate]:
    """Decode an encoded polyline (5-decimal precision) into coordinates."""
    coordinates: list[Coordinate] = []
    index = 0
    lat = 0
    lon = 0
    while index < len(polyline):
        dlat, index = _decode_value(polyline, index)
        dlon, index = _decode_value(polyline, index)
        lat += dlat
        lon += dlon
        coordinates.append(Coordinate(latitude=lat / 1e5, longitude=lon / 1e5))
    return coordinates


def _encode_value(value: int) -> str:
    value = ~(value << 1) if value < 0 else value << 1
    chunks = []
    while value >= 0x20:
        chunks.append(chr((0x20 | (value & 0x1F)) + 63))
        value >>= 5
    chunks.append(chr(value + 63))
    return "".join(chunks)


def encode_polyline(coordinates: Sequence[Coordinate]) -> str:
    """Encode coordinates with the same 5-decimal polyline algorithm."""
    parts = []
    prev_lat = 0
    prev_lon = 0
    for point in coordinates:
        lat = int(round(point.latitude * 1e5))
        lon = int(round(point.longitude * 1e5))
        parts.append(_encode_value(lat - prev_lat))
        parts.append(_encode_value(lon - prev_lon))
        prev_lat, prev_lon = lat, lon
    return "".join(parts)


def check_health(base_url: str | None = None, api_key: str | None = None) -> bool:
    """Check provider reachability with a minimal geocoding request."""
    base = (base_url or settings.directions_base_url).rstrip("/")
    key = api_key or settings.google_maps_api_key
    if not key:
        return False
    try:
        response = httpx.get(
            f"{base}/geocode/json",
            params={"latlng": "52.517037,13.388860", "key": key},
            timeout=5.0,
        )
        response.raise_for_status()
        return response.json().get("status") in {"OK", "ZERO_RESULTS"}
    except (httpx.HTTPError, ValueError):
        return False
