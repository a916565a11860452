"""Safe routing orchestration service used by the HTTP layer."""

from __future__ import annotations

import logging

from ...models.domain import Coordinate, Hotspot, RouteResult
from ...schemas.routing import RouteModel, SafeRouteRequest, SafeRouteResponse
from .evaluator import SearchOutcome
from .hotspots import sample_path
from .planner import SearchConfig, plan_safe_route
from .provider import build_provider

NO_ROUTE_CAUTION = (
    "No route avoiding the reported hotspots was found. "
    "The direct route is shown; take extra care along it."
)
PARTIAL_CAUTION = "The suggested route still passes {count} reported hotspot(s)."

logger = logging.getLogger(__name__)


def _build_config(payload: SafeRouteRequest) -> SearchConfig:
    base = SearchConfig()
    overrides = payload.config
    return SearchConfig(
        detection_radius_m=overrides.detection_radius_m
        if overrides and overrides.detection_radius_m is not None
        else base.detection_radius_m,
        deadline_ms=overrides.deadline_ms
        if overrides and overrides.deadline_ms is not None
        else base.deadline_ms,
        waypoint_cap=overrides.waypoint_cap
        if overrides and overrides.waypoint_cap is not None
        else base.waypoint_cap,
        max_parallel_requests=overrides.max_parallel_requests
        if overrides and overrides.max_parallel_requests is not None
        else base.max_parallel_requests,
    )


def _route_model(route: RouteResult | None) -> RouteModel | None:
    if route is None:
        return None
    return RouteModel(
        distance_m=round(route.distance_m, 1),
        duration_s=round(route.duration_s, 1),
        hotspots_on_path=sorted(route.hotspots_on_path),
        coordinates=[[point.latitude, point.longitude] for point in sample_path(route)],
    )


def _metadata(outcome: SearchOutcome) -> dict:
    return {
        "best_hotspot_count": outcome.best_hotspot_count,
        "best_distance_m": outcome.best_distance,
        "best_duration_s": outcome.best_duration,
        "baseline_distance_m": outcome.baseline_distance,
        "baseline_duration_s": outcome.baseline_duration,
        "baseline_hotspot_count": outcome.baseline_hotspot_count,
        "strategies_attempted": outcome.strategies_attempted,
        "provider_failures": outcome.provider_failures,
        "best_strategy": outcome.best_strategy,
        "accepted_strategy": outcome.accepted_strategy,
        "terminated_early": outcome.terminated_early,
        "deadline_exceeded": outcome.deadline_exceeded,
        "phases_run": list(outcome.phases_run),
        "elapsed_seconds": round(outcome.elapsed_seconds, 3),
    }


def plan_route(payload: SafeRouteRequest) -> SafeRouteResponse:
    """Plan a hotspot-avoiding route for an API request.

    Raises:
        ValueError: if the routing provider is unknown or not configured.
    """
    try:
        provider = build_provider(payload.provider)
    except ValueError as e:
        logger.error(f"Routing provider initialization failed: {e}")
        raise ValueError(f"Routing provider is not configured: {e}") from e

    origin = Coordinate(payload.origin.lat, payload.origin.lng)
    destination = Coordinate(payload.destination.lat, payload.destination.lng)
    hotspots = [Hotspot(item.id, Coordinate(item.lat, item.lng)) for item in payload.hotspots]

    outcome = plan_safe_route(origin, destination, hotspots, provider, _build_config(payload))

    caution = None
    if outcome.best_route is None:
        caution = NO_ROUTE_CAUTION
    elif outcome.best_hotspot_count:
        caution = PARTIAL_CAUTION.format(count=outcome.best_hotspot_count)

    return SafeRouteResponse(
        found=outcome.found,
        route=_route_model(outcome.best_route),
        baseline=_route_model(outcome.baseline_route),
        caution=caution,
        metadata=_metadata(outcome),
    )
