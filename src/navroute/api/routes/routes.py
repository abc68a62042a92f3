"""Routing endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.routing import (
    AlternativesRequest,
    AlternativesResponse,
    DeliveryRouteRequest,
    DeliveryRouteResponse,
    StopOrderResponse,
)
from ...services.routing.errors import RouteUnavailable
from ...services.routing.service import find_alternatives, optimize_delivery, order_stops

router = APIRouter(prefix="/routes", tags=["routes"])


@router.post("/order", response_model=StopOrderResponse, status_code=status.HTTP_200_OK)
def order(payload: DeliveryRouteRequest) -> StopOrderResponse:
    try:
        return order_stops(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("/optimize", response_model=DeliveryRouteResponse, status_code=status.HTTP_200_OK)
async def optimize(payload: DeliveryRouteRequest) -> DeliveryRouteResponse:
    try:
        return await optimize_delivery(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RouteUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message) from exc
    except Exception as exc:
        logging.exception(f"Error optimizing delivery route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize delivery route: {str(exc)}"
        ) from exc


@router.post("/alternatives", response_model=AlternativesResponse, status_code=status.HTTP_200_OK)
async def alternatives(payload: AlternativesRequest) -> AlternativesResponse:
    try:
        return await find_alternatives(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RouteUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message) from exc
    except Exception as exc:
        logging.exception(f"Error comparing alternative routes: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to compare alternative routes: {str(exc)}"
        ) from exc
