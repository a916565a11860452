"""Detect which hotspots a provider route passes near."""

from __future__ import annotations

from typing import Sequence

from ...models.domain import Coordinate, Hotspot, RouteResult
from ..geospatial import within_m

DEFAULT_DETECTION_RADIUS_M = 500.0


def sample_path(route: RouteResult) -> list[Coordinate]:
    """Flatten a route's leg geometry into an ordered list of sample points.

    When no leg carries geometry the start/end of each leg is used instead,
    which is much coarser: hotspots beside the middle of a long leg go unseen.
    """
    samples: list[Coordinate] = []
    for leg in route.legs:
        samples.extend(leg.points)
    if samples:
        return samples

    for leg in route.legs:
        if not samples or samples[-1] != leg.start:
            samples.append(leg.start)
        samples.append(leg.end)
    return samples


def hotspots_near(
    path: Sequence[Coordinate],
    hotspots: Sequence[Hotspot],
    radius_m: float = DEFAULT_DETECTION_RADIUS_M,
) -> list[Hotspot]:
    """Return hotspots within ``radius_m`` of any path sample, in input order, one per id."""
    found: list[Hotspot] = []
    seen: set[str] = set()
    for hotspot in hotspots:
        if hotspot.hotspot_id in seen:
            continue
        if any(within_m(point, hotspot.coordinate, radius_m) for point in path):
            seen.add(hotspot.hotspot_id)
            found.append(hotspot)
    return found


def annotate_route(
    route: RouteResult,
    hotspots: Sequence[Hotspot],
    radius_m: float = DEFAULT_DETECTION_RADIUS_M,
) -> RouteResult:
    """Return ``route`` carrying the ids of the hotspots it passes."""
    near = hotspots_near(sample_path(route), hotspots, radius_m)
    return route.with_hotspots(hotspot.hotspot_id for hotspot in near)
