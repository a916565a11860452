"""Safe route search: request detours from a routing provider until one avoids the hotspots.

The search runs in phases (see ``strategies``). Within a phase every strategy's
provider call is issued on a bounded thread pool, but results are evaluated
strictly in strategy order so the chosen route never depends on which call
returned first. The whole search is bound to a wall-clock deadline; once it
passes, pending calls are cancelled, late results are ignored and the best
route found so far is returned.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from typing import Sequence

from ...config import settings
from ...models.domain import Coordinate, Hotspot, RouteResult, Waypoint
from .evaluator import Decision, SearchOutcome, efficiency_score, evaluate
from .hotspots import annotate_route
from .provider import RoutingProvider
from .strategies import Phase, SearchStrategy, bounding_region_strategies, build_strategies

# Share of the deadline after which the optional fallback phases are no longer started.
BOUNDING_REGION_CUTOFF = 0.7
LAST_RESORT_CUTOFF = 0.9

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SearchConfig:
    detection_radius_m: float = settings.detection_radius_m
    deadline_ms: int = settings.deadline_ms
    waypoint_cap: int = settings.waypoint_cap
    max_parallel_requests: int = settings.max_parallel_requests


class _Deadline:
    def __init__(self, budget_ms: int) -> None:
        self.started = time.monotonic()
        self.budget = budget_ms / 1000.0
        self.expires = self.started + self.budget

    def remaining(self) -> float:
        return self.expires - time.monotonic()

    def elapsed(self) -> float:
        return time.monotonic() - self.started

    def fraction_used(self) -> float:
        return self.elapsed() / self.budget if self.budget > 0 else 1.0

    def expired(self) -> bool:
        return self.remaining() <= 0


def _call_provider(
    provider: RoutingProvider,
    origin: Coordinate,
    destination: Coordinate,
    waypoints: Sequence[Waypoint],
    avoid_major_roads: bool,
) -> RouteResult | None:
    """Run one provider call; any failure is reported as "no route"."""
    try:
        return provider.compute_route(origin, destination, waypoints, avoid_major_roads)
    except Exception as e:
        logger.warning(f"Routing provider raised {type(e).__name__}: {e}", exc_info=True)
        return None


def _unique_hotspots(hotspots: Sequence[Hotspot]) -> list[Hotspot]:
    seen: set[str] = set()
    unique: list[Hotspot] = []
    for hotspot in hotspots:
        if hotspot.hotspot_id not in seen:
            seen.add(hotspot.hotspot_id)
            unique.append(hotspot)
    return unique


def _cancel(futures: Sequence[Future]) -> None:
    for future in futures:
        future.cancel()


class _Search:
    """State of one planning call. Only the calling thread mutates ``outcome``."""

    def __init__(
        self,
        origin: Coordinate,
        destination: Coordinate,
        hotspots: list[Hotspot],
        provider: RoutingProvider,
        config: SearchConfig,
        executor: ThreadPoolExecutor,
    ) -> None:
        self.origin = origin
        self.destination = destination
        self.hotspots = hotspots
        self.provider = provider
        self.config = config
        self.executor = executor
        self.deadline = _Deadline(config.deadline_ms)
        self.outcome = SearchOutcome()
        self.baseline: RouteResult | None = None

    def _submit(self, waypoints: Sequence[Waypoint], avoid_major_roads: bool) -> Future:
        return self.executor.submit(
            _call_provider, self.provider, self.origin, self.destination, list(waypoints), avoid_major_roads
        )

    def _await(self, future: Future) -> tuple[bool, RouteResult | None]:
        """Wait for ``future`` within the remaining budget; returns ``(in_time, route)``."""
        remaining = self.deadline.remaining()
        if remaining <= 0:
            return False, None
        try:
            return True, future.result(timeout=remaining)
        except FuturesTimeoutError:
            return False, None

    def _annotate(self, route: RouteResult) -> RouteResult:
        return annotate_route(route, self.hotspots, self.config.detection_radius_m)

    def request_baseline(self) -> None:
        in_time, route = self._await(self._submit([], False))
        if not in_time:
            self.outcome.deadline_exceeded = True
            logger.warning("Baseline route request did not finish before the deadline")
            return
        if route is None:
            self.outcome.provider_failures += 1
            logger.warning("Baseline route unavailable; scoring candidates by hotspot count only")
            return
        self.baseline = self._annotate(route)
        self.outcome.set_baseline(self.baseline)
        logger.info(
            f"Baseline route: {self.baseline.distance_m:.0f} m, {self.baseline.duration_s:.0f} s, "
            f"{self.baseline.hotspot_count} hotspot(s) on path"
        )

    def accept_baseline(self) -> None:
        self.outcome.record(self.baseline, label="baseline", efficiency=1.0)
        self.outcome.accepted_strategy = "baseline"

    def should_skip(self, phase: Phase) -> bool:
        outcome = self.outcome
        used = self.deadline.fraction_used()
        if phase is Phase.BOUNDING_REGION:
            return outcome.best_hotspot_count == 0 or used > BOUNDING_REGION_CUTOFF
        if phase is Phase.LAST_RESORT:
            if used > LAST_RESORT_CUTOFF:
                return True
            baseline_count = outcome.baseline_hotspot_count
            return (
                outcome.best_route is not None
                and bool(baseline_count)
                and outcome.best_hotspot_count < baseline_count / 2
            )
        return False

    def strategies_for(self, phase: Phase) -> list[SearchStrategy]:
        if phase is Phase.BOUNDING_REGION:
            return bounding_region_strategies(self.hotspots, self.origin)
        return build_strategies([phase])

    def run_phase(self, phase: Phase) -> bool:
        """Run every strategy of ``phase``; returns True when the search must stop."""
        submitted: list[tuple[SearchStrategy, Future]] = []
        for strategy in self.strategies_for(phase):
            waypoints = strategy.waypoints(self.hotspots, self.origin, self.config.waypoint_cap)
            if not waypoints:
                logger.debug(f"Strategy {strategy.label} produced no safe waypoints; skipping")
                continue
            submitted.append((strategy, self._submit(waypoints, strategy.avoid_major_roads)))
            self.outcome.strategies_attempted += 1

        futures = [future for _, future in submitted]
        for index, (strategy, future) in enumerate(submitted):
            in_time, route = self._await(future)
            if not in_time:
                self.outcome.deadline_exceeded = True
                _cancel(futures[index:])
                logger.info(f"Deadline reached during phase {phase.name}")
                return True
            if route is None:
                self.outcome.provider_failures += 1
                logger.debug(f"Strategy {strategy.label} returned no route")
                continue

            candidate = self._annotate(route)
            decision = evaluate(candidate, self.baseline, self.outcome)
            logger.debug(
                f"Strategy {strategy.label}: {candidate.hotspot_count} hotspot(s), "
                f"{candidate.distance_m:.0f} m, {candidate.duration_s:.0f} s -> {decision.value}"
            )
            if decision is Decision.DISCARD:
                continue
            efficiency = efficiency_score(candidate, self.baseline) if self.baseline is not None else None
            self.outcome.record(candidate, label=strategy.label, efficiency=efficiency)
            if decision is Decision.ACCEPT:
                self.outcome.accepted_strategy = strategy.label
                self.outcome.terminated_early = True
                _cancel(futures[index + 1:])
                logger.info(f"Accepted route from strategy {strategy.label}")
                return True
        return False

    def run(self) -> SearchOutcome:
        self.request_baseline()

        if self.baseline is not None and (not self.hotspots or self.baseline.hotspot_count == 0):
            self.accept_baseline()
            return self.finish()
        if not self.hotspots or self.outcome.deadline_exceeded:
            return self.finish()

        for phase in Phase:
            if self.deadline.expired():
                self.outcome.deadline_exceeded = True
                break
            if self.should_skip(phase):
                logger.debug(f"Skipping phase {phase.name}")
                continue
            self.outcome.phases_run.append(int(phase))
            if self.run_phase(phase):
                break
        return self.finish()

    def finish(self) -> SearchOutcome:
        self.outcome.elapsed_seconds = self.deadline.elapsed()
        if self.outcome.best_route is None:
            logger.warning(
                f"No route found after {self.outcome.strategies_attempted} strategies "
                f"({self.outcome.provider_failures} provider failures)"
            )
        else:
            logger.info(
                f"Search finished in {self.outcome.elapsed_seconds:.2f}s: best route passes "
                f"{self.outcome.best_hotspot_count} hotspot(s) via {self.outcome.best_strategy}"
            )
        return self.outcome


def plan_safe_route(
    origin: Coordinate,
    destination: Coordinate,
    hotspots: Sequence[Hotspot],
    provider: RoutingProvider,
    config: SearchConfig | None = None,
) -> SearchOutcome:
    """Find a route from ``origin`` to ``destination`` that stays clear of ``hotspots``.

    Args:
        origin: Start of the trip.
        destination: End of the trip.
        hotspots: Danger points to avoid; duplicates by id are ignored.
        provider: Routing backend used for every route request.
        config: Search limits; defaults come from application settings.

    Returns:
        SearchOutcome whose ``best_route`` is the safest acceptable route found,
        possibly still passing some hotspots, or None when the provider never
        produced a route. Never raises for provider failures.
    """
    config = config or SearchConfig()
    executor = ThreadPoolExecutor(max_workers=config.max_parallel_requests, thread_name_prefix="saferoute")
    try:
        search = _Search(origin, destination, _unique_hotspots(hotspots), provider, config, executor)
        return search.run()
    finally:
        # In-flight calls are left to their own HTTP timeouts; their results are never read.
        executor.shutdown(wait=False, cancel_futures=True)
