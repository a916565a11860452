"""Ordered search strategies, cheapest and most likely to succeed first."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Sequence

from ...models.domain import Coordinate, Hotspot, Waypoint
from .waypoints import COMPASS_NAMES, bounding_region_waypoints, synthesize_waypoints


class Phase(IntEnum):
    SMALL = 1
    MEDIUM = 2
    LARGE = 3
    BOUNDING_REGION = 4
    LAST_RESORT = 5


@dataclass(frozen=True, slots=True)
class PhaseParameters:
    offsets_degrees: tuple[float, ...]
    min_safety_margin_m: float
    compass_starts: tuple[int, ...] = (0, 2, 4, 6)
    directions: int = 8


# 0.01 deg of latitude is roughly 1.1 km.
PHASE_PARAMETERS: dict[Phase, PhaseParameters] = {
    Phase.SMALL: PhaseParameters(offsets_degrees=(0.015, 0.018), min_safety_margin_m=1000.0),
    Phase.MEDIUM: PhaseParameters(offsets_degrees=(0.027,), min_safety_margin_m=1500.0),
    Phase.LARGE: PhaseParameters(offsets_degrees=(0.045,), min_safety_margin_m=2000.0),
    Phase.LAST_RESORT: PhaseParameters(
        offsets_degrees=(0.135, 0.18),
        min_safety_margin_m=4000.0,
        compass_starts=(0, 1),
        directions=4,
    ),
}

BOUNDING_REGION_MARGINS_M: tuple[float, ...] = (3000.0, 5000.0, 8000.0, 12000.0, 15000.0)
BOUNDING_REGION_SIDES = ("north", "south", "east", "west")
BOUNDING_REGION_SAFETY_M = 2000.0


@dataclass(frozen=True, slots=True)
class SearchStrategy:
    phase: Phase
    offset_degrees: float
    compass_start_index: int
    min_safety_margin_m: float
    avoid_major_roads: bool
    directions: int = 8
    fixed_waypoints: tuple[Waypoint, ...] | None = None
    label: str = ""

    def waypoints(self, hotspots: Sequence[Hotspot], origin: Coordinate, cap: int) -> list[Waypoint]:
        """Via-points for this attempt, never more than ``cap``."""
        if self.fixed_waypoints is not None:
            return list(self.fixed_waypoints[:cap])
        return synthesize_waypoints(
            hotspots,
            offset_degrees=self.offset_degrees,
            compass_start=self.compass_start_index,
            min_safety_m=self.min_safety_margin_m,
            origin=origin,
            cap=cap,
            directions=self.directions,
        )


def _offset_phase(phase: Phase) -> list[SearchStrategy]:
    params = PHASE_PARAMETERS[phase]
    strategies: list[SearchStrategy] = []
    for avoid_major_roads in (False, True):
        for offset_degrees in params.offsets_degrees:
            for start in params.compass_starts:
                road = "minor" if avoid_major_roads else "any"
                strategies.append(
                    SearchStrategy(
                        phase=phase,
                        offset_degrees=offset_degrees,
                        compass_start_index=start,
                        min_safety_margin_m=params.min_safety_margin_m,
                        avoid_major_roads=avoid_major_roads,
                        directions=params.directions,
                        label=f"{phase.name.lower()}:{offset_degrees:g}deg:{COMPASS_NAMES[start]}:{road}",
                    )
                )
    return strategies


def build_strategies(phases: Sequence[Phase] = (Phase.SMALL, Phase.MEDIUM, Phase.LARGE, Phase.LAST_RESORT)) -> list[SearchStrategy]:
    """Compass-offset strategies for the requested phases, in phase order."""
    strategies: list[SearchStrategy] = []
    for phase in sorted(phases):
        if phase is Phase.BOUNDING_REGION:
            raise ValueError("Bounding-region strategies depend on the hotspots; use bounding_region_strategies().")
        strategies.extend(_offset_phase(phase))
    return strategies


def bounding_region_strategies(
    hotspots: Sequence[Hotspot],
    origin: Coordinate,
    margins_m: Sequence[float] = BOUNDING_REGION_MARGINS_M,
    min_safety_m: float = BOUNDING_REGION_SAFETY_M,
) -> list[SearchStrategy]:
    """Detours skirting the hotspots' enclosing rectangle at increasing margins.

    Sides whose skirting points are not safe are left out.
    """
    strategies: list[SearchStrategy] = []
    for margin in margins_m:
        for side in BOUNDING_REGION_SIDES:
            waypoints = bounding_region_waypoints(hotspots, side, margin, origin, min_safety_m)
            if not waypoints:
                continue
            strategies.append(
                SearchStrategy(
                    phase=Phase.BOUNDING_REGION,
                    offset_degrees=0.0,
                    compass_start_index=0,
                    min_safety_margin_m=min_safety_m,
                    avoid_major_roads=False,
                    fixed_waypoints=tuple(waypoints),
                    label=f"bounding_region:{side}:{margin / 1000:g}km",
                )
            )
    return strategies
