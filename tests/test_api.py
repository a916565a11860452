import pytest
from fastapi.testclient import TestClient

from saferoute.main import create_app
from saferoute.models.domain import Coordinate, RouteLeg, RouteResult
from saferoute.services.routing import service as routing_service


class DummyProvider:
    """Returns a straight origin-destination route, or a fixed detour when waypoints are given."""

    def compute_route(self, origin, destination, waypoints, avoid_major_roads):
        if waypoints:
            points = [origin, waypoints[0].coordinate, destination]
            return RouteResult.from_legs([RouteLeg(origin, destination, 2200.0, 220.0, points)])
        midpoint = Coordinate(
            (origin.latitude + destination.latitude) / 2, (origin.longitude + destination.longitude) / 2
        )
        return RouteResult.from_legs([RouteLeg(origin, destination, 2000.0, 200.0, [origin, midpoint, destination])])


class DeadProvider:
    def compute_route(self, origin, destination, waypoints, avoid_major_roads):
        return None


@pytest.fixture
def api_client() -> TestClient:
    return TestClient(create_app())


def _payload(**extra) -> dict:
    payload = {
        "origin": {"lat": -26.2041, "lng": 28.0473},
        "destination": {"lat": -26.1900, "lng": 28.0600},
        "hotspots": [{"id": "h1", "lat": -26.1970, "lng": 28.0535}],
        "config": {"deadline_ms": 5000},
    }
    payload.update(extra)
    return payload


def test_health(api_client: TestClient):
    response = api_client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_safe_route_returns_best_route(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(routing_service, "build_provider", lambda name=None: DummyProvider())

    response = api_client.post("/api/routes/safe", json=_payload())

    assert response.status_code == 200
    body = response.json()
    assert body["found"] is True
    assert body["route"]["hotspots_on_path"] == []
    assert body["baseline"]["hotspots_on_path"] == ["h1"]
    assert body["caution"] is None
    assert body["metadata"]["baseline_hotspot_count"] == 1
    assert body["metadata"]["accepted_strategy"].startswith("small:")
    assert body["route"]["coordinates"][0] == [-26.2041, 28.0473]


def test_no_hotspots_returns_direct_route(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(routing_service, "build_provider", lambda name=None: DummyProvider())

    response = api_client.post("/api/routes/safe", json=_payload(hotspots=[]))

    body = response.json()
    assert body["found"] is True
    assert body["metadata"]["strategies_attempted"] == 0
    assert body["route"]["distance_m"] == 2000.0


def test_no_route_found_is_reported_with_caution(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(routing_service, "build_provider", lambda name=None: DeadProvider())

    response = api_client.post("/api/routes/safe", json=_payload(config={"deadline_ms": 1000}))

    assert response.status_code == 200
    body = response.json()
    assert body["found"] is False
    assert body["route"] is None
    assert body["caution"] == routing_service.NO_ROUTE_CAUTION


def test_unconfigured_provider_is_a_bad_request(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    def _fail(name=None):
        raise ValueError("OSRM base URL is not configured.")

    monkeypatch.setattr(routing_service, "build_provider", _fail)

    response = api_client.post("/api/routes/safe", json=_payload())

    assert response.status_code == 400
    assert "not configured" in response.json()["detail"]


def test_invalid_coordinates_are_rejected(api_client: TestClient):
    response = api_client.post("/api/routes/safe", json=_payload(origin={"lat": 123.0, "lng": 28.0}))

    assert response.status_code == 422


def test_waypoint_cap_above_provider_limit_is_rejected(api_client: TestClient):
    response = api_client.post("/api/routes/safe", json=_payload(config={"waypoint_cap": 24}))

    assert response.status_code == 422
