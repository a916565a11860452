"""Geospatial helper functions.

Distances are great-circle (Haversine) on a spherical Earth. Poles and the
antimeridian are not special-cased; the planner targets mid-latitude regions.
"""

from __future__ import annotations

import math
from typing import Iterable

from shapely.geometry import MultiPoint

from ..models.domain import Coordinate

EARTH_RADIUS_M = 6_371_000.0
# Meridian degree length on the sphere above; used to express metric margins in degrees.
METERS_PER_DEGREE = EARTH_RADIUS_M * math.pi / 180.0


def haversine_m(a: Coordinate, b: Coordinate) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(a.latitude), math.radians(b.latitude)
    d_phi = math.radians(b.latitude - a.latitude)
    d_lambda = math.radians(b.longitude - a.longitude)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Clamp so rounding never pushes the operand of sqrt(1 - h) negative.
    h = min(1.0, max(0.0, h))
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_M * c


def within_m(a: Coordinate, b: Coordinate, threshold_m: float) -> bool:
    return haversine_m(a, b) <= threshold_m


def is_clear_of(point: Coordinate, others: Iterable[Coordinate], margin_m: float) -> bool:
    """Return True if ``point`` is at least ``margin_m`` away from every coordinate in ``others``."""

    return all(haversine_m(point, other) >= margin_m for other in others)


def offset(coordinate: Coordinate, d_lat: float, d_lng: float) -> Coordinate:
    return Coordinate(coordinate.latitude + d_lat, coordinate.longitude + d_lng)


def meters_to_degrees(meters: float) -> float:
    return meters / METERS_PER_DEGREE


def bounding_box(coordinates: Iterable[Coordinate]) -> tuple[float, float, float, float]:
    """Return ``(min_lat, min_lng, max_lat, max_lng)`` of the given coordinates."""

    points = [(c.longitude, c.latitude) for c in coordinates]
    if not points:
        raise ValueError("Bounding box needs at least one coordinate.")
    min_lng, min_lat, max_lng, max_lat = MultiPoint(points).bounds
    return min_lat, min_lng, max_lat, max_lng
