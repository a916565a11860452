import random
import time

import pytest

from saferoute.models.domain import Coordinate, Hotspot, RouteLeg, RouteResult
from saferoute.services.geospatial import haversine_m
from saferoute.services.routing.planner import SearchConfig, _Deadline, plan_safe_route
from saferoute.services.routing.strategies import Phase

ORIGIN = Coordinate(-26.2041, 28.0473)
DESTINATION = Coordinate(-26.1900, 28.0600)
ON_PATH = Hotspot("hotspot_0", Coordinate(-26.1970, 28.0535))


def _densify(corners, step_m=40.0):
    points = [corners[0]]
    for a, b in zip(corners, corners[1:]):
        count = max(1, int(haversine_m(a, b) // step_m) + 1)
        for i in range(1, count + 1):
            t = i / count
            points.append(
                Coordinate(
                    a.latitude + (b.latitude - a.latitude) * t,
                    a.longitude + (b.longitude - a.longitude) * t,
                )
            )
    return points


class StraightLineProvider:
    """Routes as straight lines through the waypoints at a constant speed."""

    def __init__(self, metrics=None, speed_mps=10.0, ignore_waypoints=False, jitter_s=0.0):
        self.metrics = metrics
        self.speed_mps = speed_mps
        self.ignore_waypoints = ignore_waypoints
        self.jitter_s = jitter_s
        self.calls = []

    def compute_route(self, origin, destination, waypoints, avoid_major_roads):
        self.calls.append(list(waypoints))
        if self.jitter_s:
            time.sleep(random.uniform(0, self.jitter_s))
        via = [] if self.ignore_waypoints else [waypoint.coordinate for waypoint in waypoints]
        corners = [origin, *via, destination]
        distance = sum(haversine_m(a, b) for a, b in zip(corners, corners[1:]))
        duration = distance / self.speed_mps
        if self.metrics:
            distance, duration = self.metrics(waypoints, distance, duration)
        return RouteResult.from_legs([RouteLeg(origin, destination, distance, duration, _densify(corners))])


class FailingProvider:
    def __init__(self):
        self.calls = []

    def compute_route(self, origin, destination, waypoints, avoid_major_roads):
        self.calls.append(list(waypoints))
        return None


class RaisingProvider:
    def compute_route(self, origin, destination, waypoints, avoid_major_roads):
        raise ConnectionError("routing backend down")


class SlowProvider:
    def __init__(self, delay_s):
        self.delay_s = delay_s
        self.inner = StraightLineProvider()

    def compute_route(self, origin, destination, waypoints, avoid_major_roads):
        time.sleep(self.delay_s)
        return self.inner.compute_route(origin, destination, waypoints, avoid_major_roads)


def _comparable(waypoints, distance, duration):
    # Road network where any detour costs about 10% over the direct drive.
    return (2200.0, 220.0) if waypoints else (2000.0, 200.0)


def _expensive(waypoints, distance, duration):
    return (9000.0, 900.0) if waypoints else (2000.0, 200.0)


def test_no_hotspots_returns_baseline_without_strategies():
    provider = StraightLineProvider()

    outcome = plan_safe_route(ORIGIN, DESTINATION, [], provider)

    assert outcome.best_route is not None
    assert outcome.best_route is outcome.baseline_route
    assert outcome.best_hotspot_count == 0
    assert outcome.strategies_attempted == 0
    assert outcome.accepted_strategy == "baseline"
    assert provider.calls == [[]]


def test_clean_baseline_is_used_directly():
    far_away = Hotspot("elsewhere", Coordinate(-25.5, 27.5))

    outcome = plan_safe_route(ORIGIN, DESTINATION, [far_away], StraightLineProvider())

    assert outcome.best_route is outcome.baseline_route
    assert outcome.strategies_attempted == 0


def test_hotspot_on_direct_path_is_avoided_in_first_phase():
    provider = StraightLineProvider(metrics=_comparable)

    outcome = plan_safe_route(ORIGIN, DESTINATION, [ON_PATH], provider, SearchConfig(deadline_ms=10_000))

    assert outcome.baseline_hotspot_count == 1
    assert outcome.best_route is not None
    assert outcome.best_hotspot_count == 0
    assert outcome.terminated_early
    assert outcome.accepted_strategy.startswith("small:")
    assert outcome.phases_run == [int(Phase.SMALL)]


def test_accepted_clean_route_is_never_replaced():
    outcome = plan_safe_route(
        ORIGIN, DESTINATION, [ON_PATH], StraightLineProvider(metrics=_comparable), SearchConfig(deadline_ms=10_000)
    )

    assert outcome.best_strategy == outcome.accepted_strategy
    assert outcome.best_route.hotspots_on_path == frozenset()


def test_slow_clean_route_is_kept_and_fallback_phases_skipped():
    outcome = plan_safe_route(
        ORIGIN, DESTINATION, [ON_PATH], StraightLineProvider(metrics=_expensive), SearchConfig(deadline_ms=20_000)
    )

    assert outcome.best_hotspot_count == 0
    assert outcome.accepted_strategy is None
    assert outcome.phases_run == [int(Phase.SMALL), int(Phase.MEDIUM), int(Phase.LARGE)]


def test_all_phases_run_when_no_detour_helps():
    provider = StraightLineProvider(ignore_waypoints=True)

    outcome = plan_safe_route(ORIGIN, DESTINATION, [ON_PATH], provider, SearchConfig(deadline_ms=20_000))

    assert outcome.phases_run == [int(phase) for phase in Phase]
    assert outcome.best_route is not None
    assert outcome.best_hotspot_count == 1
    assert not outcome.terminated_early


def test_dense_cluster_returns_best_effort_route():
    rng = random.Random(3)
    hotspots = [Hotspot("center", DESTINATION)]
    for i in range(24):
        hotspots.append(
            Hotspot(
                f"ring{i}",
                Coordinate(
                    DESTINATION.latitude + rng.uniform(-0.004, 0.004),
                    DESTINATION.longitude + rng.uniform(-0.004, 0.004),
                ),
            )
        )
    provider = StraightLineProvider()

    outcome = plan_safe_route(ORIGIN, DESTINATION, hotspots, provider, SearchConfig(deadline_ms=4000))

    assert outcome.best_route is not None
    assert outcome.best_hotspot_count >= 1
    assert outcome.best_route.hotspots_on_path <= {hotspot.hotspot_id for hotspot in hotspots}
    assert max(len(waypoints) for waypoints in provider.calls) <= 23


def test_always_failing_provider_yields_no_route():
    provider = FailingProvider()
    started = time.monotonic()

    outcome = plan_safe_route(ORIGIN, DESTINATION, [ON_PATH], provider, SearchConfig(deadline_ms=2000))

    assert time.monotonic() - started < 2.5
    assert outcome.best_route is None
    assert outcome.baseline_route is None
    assert outcome.provider_failures == len(provider.calls)
    assert len(provider.calls) > 1


def test_raising_provider_is_not_fatal():
    outcome = plan_safe_route(ORIGIN, DESTINATION, [ON_PATH], RaisingProvider(), SearchConfig(deadline_ms=2000))

    assert outcome.best_route is None
    assert outcome.provider_failures > 0


def test_missing_baseline_falls_back_to_hotspot_counts():
    inner = StraightLineProvider()

    class NoBaselineProvider:
        def compute_route(self, origin, destination, waypoints, avoid_major_roads):
            if not waypoints:
                return None
            return inner.compute_route(origin, destination, waypoints, avoid_major_roads)

    outcome = plan_safe_route(ORIGIN, DESTINATION, [ON_PATH], NoBaselineProvider(), SearchConfig(deadline_ms=10_000))

    assert outcome.baseline_route is None
    assert outcome.best_hotspot_count == 0
    assert outcome.terminated_early


def test_deadline_is_respected_with_slow_provider():
    started = time.monotonic()

    outcome = plan_safe_route(
        ORIGIN, DESTINATION, [ON_PATH], SlowProvider(0.3), SearchConfig(deadline_ms=500, max_parallel_requests=2)
    )

    assert time.monotonic() - started < 0.5 + 0.3 + 0.2
    assert outcome.deadline_exceeded


def test_parallel_and_sequential_search_choose_the_same_route():
    config_sequential = SearchConfig(deadline_ms=30_000, max_parallel_requests=1)
    config_parallel = SearchConfig(deadline_ms=30_000, max_parallel_requests=8)

    sequential = plan_safe_route(
        ORIGIN, DESTINATION, [ON_PATH], StraightLineProvider(metrics=_expensive), config_sequential
    )
    parallel = plan_safe_route(
        ORIGIN, DESTINATION, [ON_PATH], StraightLineProvider(metrics=_expensive, jitter_s=0.01), config_parallel
    )

    assert parallel.best_strategy == sequential.best_strategy
    assert parallel.best_hotspot_count == sequential.best_hotspot_count
    assert parallel.best_distance == sequential.best_distance


def test_duplicate_hotspot_ids_are_counted_once():
    outcome = plan_safe_route(
        ORIGIN,
        DESTINATION,
        [ON_PATH, ON_PATH],
        StraightLineProvider(ignore_waypoints=True),
        SearchConfig(deadline_ms=10_000),
    )

    assert outcome.baseline_hotspot_count == 1


EQUATOR_ORIGIN = Coordinate(0.0, 0.0)
EQUATOR_DESTINATION = Coordinate(0.0, 0.2)


class FixedDetourProvider:
    """Direct route along the equator; every detour passes exactly the ``detour_passes`` hotspots."""

    def __init__(self, detour_passes):
        self.detour_passes = detour_passes

    def compute_route(self, origin, destination, waypoints, avoid_major_roads):
        if not waypoints:
            direct = _densify([origin, destination])
            return RouteResult.from_legs([RouteLeg(origin, destination, 20_000.0, 1_200.0, direct)])
        points = [origin, *(hotspot.coordinate for hotspot in self.detour_passes), destination]
        return RouteResult.from_legs([RouteLeg(origin, destination, 30_000.0, 2_000.0, points)])


def _equator_hotspots(count):
    return [Hotspot(f"eq{i}", Coordinate(0.0, 0.03 * (i + 1))) for i in range(count)]


@pytest.mark.parametrize(
    ("hotspot_count", "expected_phases"),
    [
        (6, [1, 2, 3, 4]),
        (4, [1, 2, 3, 4, 5]),
    ],
)
def test_last_resort_runs_only_without_a_large_hotspot_reduction(hotspot_count, expected_phases):
    hotspots = _equator_hotspots(hotspot_count)
    provider = FixedDetourProvider(detour_passes=hotspots[:2])

    outcome = plan_safe_route(
        EQUATOR_ORIGIN, EQUATOR_DESTINATION, hotspots, provider, SearchConfig(deadline_ms=20_000)
    )

    assert outcome.baseline_hotspot_count == hotspot_count
    assert outcome.best_hotspot_count == 2
    assert outcome.accepted_strategy is None
    assert outcome.phases_run == expected_phases


@pytest.mark.parametrize(
    ("fraction_used", "expected_phases"),
    [
        (0.5, [1, 2, 3, 4, 5]),
        (0.7, [1, 2, 3, 4, 5]),
        (0.8, [1, 2, 3, 5]),
        (0.95, [1, 2, 3]),
    ],
)
def test_fallback_phases_are_gated_by_time_used(monkeypatch, fraction_used, expected_phases):
    monkeypatch.setattr(_Deadline, "fraction_used", lambda self: fraction_used)

    outcome = plan_safe_route(
        ORIGIN,
        DESTINATION,
        [ON_PATH],
        StraightLineProvider(ignore_waypoints=True),
        SearchConfig(deadline_ms=20_000),
    )

    assert outcome.phases_run == expected_phases
    assert not outcome.deadline_exceeded
