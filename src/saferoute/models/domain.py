"""Domain models for coordinates, hotspots and provider routes."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, List


@dataclass(frozen=True, slots=True)
class Coordinate:
    """A WGS84 point in decimal degrees."""

    latitude: float
    longitude: float


@dataclass(frozen=True, slots=True)
class Hotspot:
    """A reported danger point to route away from. Identity is the id."""

    hotspot_id: str
    coordinate: Coordinate


@dataclass(frozen=True, slots=True)
class Waypoint:
    """Via-point that only biases the provider's path, never a stop."""

    coordinate: Coordinate
    stopover: bool = False


@dataclass(slots=True)
class RouteLeg:
    start: Coordinate
    end: Coordinate
    distance_m: float
    duration_s: float
    points: List[Coordinate] = field(default_factory=list)


@dataclass(slots=True)
class RouteResult:
    """A provider route plus the hotspot ids it was found to pass."""

    legs: List[RouteLeg]
    distance_m: float
    duration_s: float
    hotspots_on_path: frozenset[str] = frozenset()

    @classmethod
    def from_legs(cls, legs: Iterable[RouteLeg]) -> "RouteResult":
        leg_list = list(legs)
        return cls(
            legs=leg_list,
            distance_m=sum(leg.distance_m for leg in leg_list),
            duration_s=sum(leg.duration_s for leg in leg_list),
        )

    @property
    def hotspot_count(self) -> int:
        return len(self.hotspots_on_path)

    def with_hotspots(self, hotspot_ids: Iterable[str]) -> "RouteResult":
        return replace(self, hotspots_on_path=frozenset(hotspot_ids))
