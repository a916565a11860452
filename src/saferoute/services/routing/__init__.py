"""Safe routing services."""

from .evaluator import Decision, SearchOutcome
from .planner import SearchConfig, plan_safe_route
from .provider import ProviderUnavailable, RoutingProvider, build_provider

__all__ = [
    "plan_safe_route",
    "SearchConfig",
    "SearchOutcome",
    "Decision",
    "RoutingProvider",
    "ProviderUnavailable",
    "build_provider",
]
