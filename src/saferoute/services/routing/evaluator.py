"""Score candidate routes against the baseline and the best route found so far."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ...models.domain import RouteResult

# Zero-hotspot routes are acceptable when both distance and duration stay within this factor of baseline.
COMPARABLE_FACTOR = 1.2
# A hotspot reduction of at least this share, on a faster route, ends the search.
LARGE_REDUCTION = 0.5


class Decision(str, Enum):
    ACCEPT = "accept"
    REPLACE_BEST = "replace_best"
    DISCARD = "discard"


@dataclass(slots=True)
class SearchOutcome:
    """Best route found by a search plus diagnostics about how it was found."""

    best_route: Optional[RouteResult] = None
    best_hotspot_count: Optional[int] = None
    best_distance: Optional[float] = None
    best_duration: Optional[float] = None
    best_efficiency: Optional[float] = None
    baseline_route: Optional[RouteResult] = None
    baseline_distance: Optional[float] = None
    baseline_duration: Optional[float] = None
    baseline_hotspot_count: Optional[int] = None
    strategies_attempted: int = 0
    provider_failures: int = 0
    accepted_strategy: Optional[str] = None
    best_strategy: Optional[str] = None
    terminated_early: bool = False
    deadline_exceeded: bool = False
    phases_run: List[int] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def found(self) -> bool:
        return self.best_route is not None

    def set_baseline(self, baseline: RouteResult) -> None:
        self.baseline_route = baseline
        self.baseline_distance = baseline.distance_m
        self.baseline_duration = baseline.duration_s
        self.baseline_hotspot_count = baseline.hotspot_count

    def record(self, candidate: RouteResult, label: str | None = None, efficiency: float | None = None) -> None:
        self.best_route = candidate
        self.best_hotspot_count = candidate.hotspot_count
        self.best_distance = candidate.distance_m
        self.best_duration = candidate.duration_s
        self.best_efficiency = efficiency
        self.best_strategy = label


def efficiency_score(candidate: RouteResult, baseline: RouteResult) -> float:
    """Product of the baseline/candidate duration and distance ratios; 1.0 means as good as baseline."""
    duration = max(candidate.duration_s, 1e-9)
    distance = max(candidate.distance_m, 1e-9)
    return (baseline.duration_s / duration) * (baseline.distance_m / distance)


def _beats_best(candidate: RouteResult, outcome: SearchOutcome, efficiency: float | None) -> bool:
    if candidate.duration_s < outcome.best_duration:
        return True
    if candidate.duration_s == outcome.best_duration and candidate.distance_m < outcome.best_distance:
        return True
    if efficiency is not None and outcome.best_efficiency is not None:
        return efficiency > outcome.best_efficiency
    return False


def _evaluate_without_baseline(candidate: RouteResult, outcome: SearchOutcome) -> Decision:
    count = candidate.hotspot_count
    if count == 0:
        return Decision.ACCEPT
    if outcome.best_route is None or count < outcome.best_hotspot_count:
        return Decision.REPLACE_BEST
    if count == outcome.best_hotspot_count and _beats_best(candidate, outcome, None):
        return Decision.REPLACE_BEST
    return Decision.DISCARD


def evaluate(candidate: RouteResult, baseline: RouteResult | None, outcome: SearchOutcome) -> Decision:
    """Decide whether ``candidate`` ends the search, becomes the new best, or is dropped.

    Fewer hotspots always wins over efficiency. Without a baseline only the
    hotspot count (then duration and distance) is compared.
    """
    if baseline is None:
        return _evaluate_without_baseline(candidate, outcome)

    count = candidate.hotspot_count
    is_faster = candidate.duration_s <= baseline.duration_s
    is_shorter = candidate.distance_m <= baseline.distance_m
    efficiency = efficiency_score(candidate, baseline)
    has_best = outcome.best_route is not None

    if count == 0:
        comparable = (
            candidate.duration_s <= baseline.duration_s * COMPARABLE_FACTOR
            and candidate.distance_m <= baseline.distance_m * COMPARABLE_FACTOR
        )
        if (is_faster and is_shorter) or is_faster or comparable:
            return Decision.ACCEPT
        if not has_best or outcome.best_hotspot_count > 0:
            return Decision.REPLACE_BEST
        if _beats_best(candidate, outcome, efficiency):
            return Decision.REPLACE_BEST
        return Decision.DISCARD

    if not has_best or count < outcome.best_hotspot_count:
        reference = outcome.best_hotspot_count if has_best else baseline.hotspot_count
        if reference and (reference - count) / reference >= LARGE_REDUCTION and is_faster:
            return Decision.ACCEPT
        return Decision.REPLACE_BEST

    if count == outcome.best_hotspot_count and _beats_best(candidate, outcome, efficiency):
        return Decision.REPLACE_BEST
    return Decision.DISCARD
