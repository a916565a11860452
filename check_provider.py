#!/usr/bin/env python3
"""Smoke-test the configured routing provider with a real planning call."""

import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from saferoute.config import settings
from saferoute.models.domain import Coordinate, Hotspot
from saferoute.services.routing.planner import plan_safe_route
from saferoute.services.routing.provider import build_provider


def main():
    print("=" * 60)
    print(f"Routing provider check ({settings.routing_provider})")
    print("=" * 60)
    print()

    print("1. Building provider...")
    try:
        provider = build_provider()
    except ValueError as e:
        print(f"   [ERROR] {e}")
        print("   Set SAFEROUTE_OSRM_BASE_URL or SAFEROUTE_GOOGLE_MAPS_API_KEY in your .env file")
        return 1
    print("   [OK] Provider configured")
    print()

    print("2. Planning around a hotspot in central Johannesburg...")
    origin = Coordinate(-26.2041, 28.0473)
    destination = Coordinate(-26.1900, 28.0600)
    hotspots = [Hotspot("hotspot_0", Coordinate(-26.1970, 28.0535))]
    outcome = plan_safe_route(origin, destination, hotspots, provider)

    if outcome.baseline_route is None:
        print("   [ERROR] Baseline route request failed")
        return 1
    print(
        f"   [OK] Baseline: {outcome.baseline_distance:.0f} m, {outcome.baseline_duration:.0f} s, "
        f"{outcome.baseline_hotspot_count} hotspot(s)"
    )
    if outcome.best_route is None:
        print("   [WARN] No avoiding route found")
    else:
        print(
            f"   [OK] Best: {outcome.best_distance:.0f} m, {outcome.best_duration:.0f} s, "
            f"{outcome.best_hotspot_count} hotspot(s) via {outcome.best_strategy}"
        )
    print(f"   [OK] {outcome.strategies_attempted} strategies in {outcome.elapsed_seconds:.2f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
