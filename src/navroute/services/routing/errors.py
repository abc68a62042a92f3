"""Routing error taxonomy."""

from __future__ import annotations


class RoutingError(Exception):
    """Base class for routing failures surfaced to API callers."""

    def __init__(self, message: str, *, status: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class InvalidInput(RoutingError, ValueError):
    """The request cannot be optimized as given (bad coordinates, unknown preference)."""


class RouteUnavailable(RoutingError):
    """The directions provider failed or answered with a non-OK status."""


class EmptyResult(RouteUnavailable):
    """The provider answered OK but returned no usable routes or legs."""
