from saferoute.models.domain import Coordinate, RouteLeg, RouteResult
from saferoute.services.routing.evaluator import Decision, SearchOutcome, efficiency_score, evaluate

A = Coordinate(-26.2041, 28.0473)
B = Coordinate(-26.1900, 28.0600)


def _route(distance: float, duration: float, hotspots: set[str] | None = None) -> RouteResult:
    route = RouteResult.from_legs([RouteLeg(A, B, distance, duration)])
    return route.with_hotspots(hotspots or set())


BASELINE = _route(2000, 200, {"h1", "h2"})


def _outcome_with_best(route: RouteResult) -> SearchOutcome:
    outcome = SearchOutcome()
    outcome.set_baseline(BASELINE)
    outcome.record(route, label="best", efficiency=efficiency_score(route, BASELINE))
    return outcome


def _fresh_outcome() -> SearchOutcome:
    outcome = SearchOutcome()
    outcome.set_baseline(BASELINE)
    return outcome


def test_efficiency_score_is_one_for_baseline_equivalent():
    assert efficiency_score(_route(2000, 200), BASELINE) == 1.0
    assert efficiency_score(_route(4000, 400), BASELINE) == 0.25


def test_clean_faster_route_is_accepted():
    assert evaluate(_route(2500, 190), BASELINE, _fresh_outcome()) is Decision.ACCEPT


def test_clean_comparable_route_is_accepted():
    assert evaluate(_route(2390, 239), BASELINE, _fresh_outcome()) is Decision.ACCEPT


def test_clean_slow_route_becomes_best_when_none_exists():
    assert evaluate(_route(5000, 500), BASELINE, _fresh_outcome()) is Decision.REPLACE_BEST


def test_clean_slow_route_replaces_route_with_hotspots():
    outcome = _outcome_with_best(_route(2100, 210, {"h1"}))

    assert evaluate(_route(5000, 500), BASELINE, outcome) is Decision.REPLACE_BEST


def test_clean_slow_route_only_replaces_worse_clean_best():
    outcome = _outcome_with_best(_route(5000, 500))

    assert evaluate(_route(6000, 600), BASELINE, outcome) is Decision.DISCARD
    assert evaluate(_route(4000, 450), BASELINE, outcome) is Decision.REPLACE_BEST


def test_fewer_hotspots_always_replace_best():
    outcome = _outcome_with_best(_route(2000, 200, {"h1", "h2"}))

    assert evaluate(_route(9000, 900, {"h1"}), BASELINE, outcome) is Decision.REPLACE_BEST


def test_large_reduction_on_faster_route_is_accepted():
    outcome = _fresh_outcome()

    assert evaluate(_route(2100, 195, {"h1"}), BASELINE, outcome) is Decision.ACCEPT
    assert evaluate(_route(2100, 230, {"h1"}), BASELINE, outcome) is Decision.REPLACE_BEST


def test_equal_count_tie_breaks():
    outcome = _outcome_with_best(_route(3000, 300, {"h1"}))

    assert evaluate(_route(3500, 290, {"h2"}), BASELINE, outcome) is Decision.REPLACE_BEST
    assert evaluate(_route(2900, 300, {"h2"}), BASELINE, outcome) is Decision.REPLACE_BEST
    assert evaluate(_route(3100, 300, {"h2"}), BASELINE, outcome) is Decision.DISCARD


def test_more_hotspots_are_discarded():
    outcome = _outcome_with_best(_route(3000, 300, {"h1"}))

    assert evaluate(_route(1000, 100, {"h1", "h2"}), BASELINE, outcome) is Decision.DISCARD


def test_without_baseline_only_counts_matter():
    outcome = SearchOutcome()

    assert evaluate(_route(9000, 900, {"h1"}), None, outcome) is Decision.REPLACE_BEST
    outcome.record(_route(9000, 900, {"h1"}))
    assert evaluate(_route(8000, 950, {"h2"}), None, outcome) is Decision.DISCARD
    assert evaluate(_route(9500, 800, {"h2"}), None, outcome) is Decision.REPLACE_BEST
    assert evaluate(_route(99000, 9900), None, outcome) is Decision.ACCEPT
