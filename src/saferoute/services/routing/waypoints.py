"""Synthetic via-points that pull the provider's route away from hotspots."""

from __future__ import annotations

import logging
import math
from typing import Literal, Sequence

from ...models.domain import Coordinate, Hotspot, Waypoint
from ..geospatial import bounding_box, haversine_m, is_clear_of, meters_to_degrees, offset

logger = logging.getLogger(__name__)

# Unit (d_lat, d_lng) steps for N, NE, E, SE, S, SW, W, NW.
COMPASS: tuple[tuple[int, int], ...] = (
    (1, 0),
    (1, 1),
    (0, 1),
    (-1, 1),
    (-1, 0),
    (-1, -1),
    (0, -1),
    (1, -1),
)
COMPASS_NAMES = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")

Side = Literal["north", "south", "east", "west"]


def compass_sequence(start: int, directions: int = 8) -> list[int]:
    """Compass indices to try, beginning at ``start``.

    With ``directions=4`` only every other point is visited (e.g. N, E, S, W).
    """
    if directions not in (4, 8):
        raise ValueError(f"directions must be 4 or 8, got {directions}")
    step = len(COMPASS) // directions
    return [(start + step * i) % len(COMPASS) for i in range(directions)]


def _first_safe_offset(
    center: Coordinate,
    offset_degrees: float,
    sequence: Sequence[int],
    hazards: Sequence[Coordinate],
    min_safety_m: float,
) -> Coordinate | None:
    for index in sequence:
        d_lat, d_lng = COMPASS[index]
        candidate = offset(center, d_lat * offset_degrees, d_lng * offset_degrees)
        if is_clear_of(candidate, hazards, min_safety_m):
            return candidate
    return None


def synthesize_waypoints(
    hotspots: Sequence[Hotspot],
    offset_degrees: float,
    compass_start: int,
    min_safety_m: float,
    origin: Coordinate,
    cap: int,
    directions: int = 8,
) -> list[Waypoint]:
    """Place at most ``cap`` waypoints beside hotspots, nearest-to-origin first.

    Each hotspot gets the first compass offset that is ``min_safety_m`` clear of
    every hotspot; failing that the offset is doubled once, and failing that
    the hotspot is skipped.
    """
    if cap <= 0 or not hotspots:
        return []

    hazards = [hotspot.coordinate for hotspot in hotspots]
    ordered = sorted(hotspots, key=lambda hotspot: haversine_m(origin, hotspot.coordinate))
    sequence = compass_sequence(compass_start % len(COMPASS), directions)

    waypoints: list[Waypoint] = []
    for hotspot in ordered:
        if len(waypoints) >= cap:
            break
        point = _first_safe_offset(hotspot.coordinate, offset_degrees, sequence, hazards, min_safety_m)
        if point is None:
            point = _first_safe_offset(hotspot.coordinate, 2 * offset_degrees, sequence, hazards, min_safety_m)
        if point is None:
            logger.debug(f"No safe offset around hotspot {hotspot.hotspot_id} at {offset_degrees:.4f} deg")
            continue
        waypoints.append(Waypoint(coordinate=point))
    return waypoints


def bounding_region_waypoints(
    hotspots: Sequence[Hotspot],
    side: Side,
    margin_m: float,
    origin: Coordinate,
    min_safety_m: float,
) -> list[Waypoint]:
    """Two waypoints running along one edge of the hotspots' bounding rectangle.

    The edge is pushed outward by ``margin_m``. Returns an empty list when
    either point would sit closer than ``min_safety_m`` to a hotspot.
    """
    if not hotspots:
        return []

    min_lat, min_lng, max_lat, max_lng = bounding_box(hotspot.coordinate for hotspot in hotspots)
    lat_margin = meters_to_degrees(margin_m)
    mid_lat = math.radians((min_lat + max_lat) / 2)
    lng_margin = lat_margin / max(math.cos(mid_lat), 1e-6)

    if side == "north":
        corners = [Coordinate(max_lat + lat_margin, min_lng), Coordinate(max_lat + lat_margin, max_lng)]
    elif side == "south":
        corners = [Coordinate(min_lat - lat_margin, min_lng), Coordinate(min_lat - lat_margin, max_lng)]
    elif side == "east":
        corners = [Coordinate(min_lat, max_lng + lng_margin), Coordinate(max_lat, max_lng + lng_margin)]
    elif side == "west":
        corners = [Coordinate(min_lat, min_lng - lng_margin), Coordinate(max_lat, min_lng - lng_margin)]
    else:
        raise ValueError(f"Unknown side '{side}'")

    hazards = [hotspot.coordinate for hotspot in hotspots]
    if not all(is_clear_of(corner, hazards, min_safety_m) for corner in corners):
        return []

    corners.sort(key=lambda corner: haversine_m(origin, corner))
    unique: list[Coordinate] = []
    for corner in corners:
        if corner not in unique:
            unique.append(corner)
    return [Waypoint(coordinate=corner) for corner in unique]
