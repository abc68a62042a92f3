#!/usr/bin/env python3
"""Verify directions provider connectivity and leg aggregation."""

import asyncio
import sys

from navroute.config import settings
from navroute.models.domain import Coordinate, Stop
from navroute.services.routing.directions_client import DirectionsClient, check_health
from navroute.services.routing.errors import RouteUnavailable
from navroute.services.routing.service import compute_delivery_route


def main():
    print("=" * 60)
    print("Directions Provider Connection Test")
    print("=" * 60)
    print()

    print("1. Checking configuration...")
    if not settings.google_maps_api_key:
        print("   [ERROR] Google Maps API key is not configured")
        print("   Please set NAVROUTE_GOOGLE_MAPS_API_KEY in your .env file")
        return 1
    print(f"   [OK] Directions base URL: {settings.directions_base_url}")
    print()

    print("2. Testing provider health check...")
    if not check_health():
        print("   [ERROR] Directions provider is not responding")
        return 1
    print("   [OK] Directions provider is healthy and accessible!")
    print()

    print("3. Testing optimized delivery route...")
    origin = Coordinate(52.517037, 13.388860)
    stops = [
        Stop(coordinate=Coordinate(52.496891, 13.385983), name="Stop A"),
        Stop(coordinate=Coordinate(52.520008, 13.404954), name="Stop B"),
    ]
    client = DirectionsClient()
    try:
        route = asyncio.run(compute_delivery_route(origin, stops, True, client.fetch_legs))
    except RouteUnavailable as e:
        print(f"   [ERROR] Route request failed: {e.message}")
        return 1

    print(f"   [OK] Visit order: {[waypoint.name for waypoint in route.waypoints]}")
    print(f"   [OK] Distance: {route.total_distance_meters} m")
    print(f"   [OK] Duration in traffic: {route.total_duration_in_traffic_seconds} s")
    print()
    print("=" * 60)
    print("[SUCCESS] All tests passed!")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
