"""Routing provider contract shared by the HTTP adapters and the planner."""

from __future__ import annotations

from typing import Protocol, Sequence

from ...config import settings
from ...models.domain import Coordinate, RouteResult, Waypoint


class ProviderUnavailable(Exception):
    """A routing provider call failed, timed out or returned no usable route."""


class RoutingProvider(Protocol):
    def compute_route(
        self,
        origin: Coordinate,
        destination: Coordinate,
        waypoints: Sequence[Waypoint],
        avoid_major_roads: bool,
    ) -> RouteResult | None:
        """Return a route through ``waypoints``, or None when no route could be obtained."""
        ...


def build_provider(name: str | None = None, timeout: float | None = None) -> RoutingProvider:
    """Instantiate the configured routing provider adapter."""
    name = name or settings.routing_provider
    if name == "osrm":
        from .osrm_client import OSRMClient

        return OSRMClient(timeout=timeout)
    if name == "google":
        from .google_directions import GoogleDirectionsClient

        return GoogleDirectionsClient(timeout=timeout)
    raise ValueError(f"Unknown routing provider '{name}'.")
