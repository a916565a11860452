"""HTTP client for the OSRM route service."""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from ...config import settings
from ...models.domain import Coordinate, RouteLeg, RouteResult, Waypoint
from .provider import ProviderUnavailable

# OSRM only honours `exclude` classes the profile defines; the car profile has motorway.
MAJOR_ROAD_CLASS = "motorway"

logger = logging.getLogger(__name__)


class OSRMClient:
    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.osrm_base_url
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.base_url = self.base_url.rstrip("/")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout if timeout is not None else settings.provider_timeout_seconds
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        """Get a per-call HTTP client; calls run on planner worker threads."""
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 10.0)),
            transport=self._transport,
        )

    def _route_request(self, coordinates: Sequence[Coordinate], avoid_major_roads: bool) -> dict:
        coordinate_str = ";".join(f"{c.longitude},{c.latitude}" for c in coordinates)
        params = {
            "overview": "false",
            "steps": "true",
            "geometries": "polyline",
            # Only the endpoints split legs; every other coordinate is a pass-through via point.
            "waypoints": f"0;{len(coordinates) - 1}",
        }
        if avoid_major_roads:
            params["exclude"] = MAJOR_ROAD_CLASS
        url = f"{self.base_url}/route/v1/{self.profile}/{coordinate_str}"

        client = self._get_client()
        try:
            response = client.get(url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise ProviderUnavailable(f"OSRM route request timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            raise ProviderUnavailable(
                f"OSRM route request failed with HTTP {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderUnavailable(f"Failed to reach OSRM service at {self.base_url}: {e}") from e
        finally:
            client.close()

        if data.get("code") != "Ok" or not data.get("routes"):
            error_msg = data.get("message", data.get("code", "Unknown OSRM route error"))
            raise ProviderUnavailable(f"OSRM route request failed: {error_msg}")
        return data

    def compute_route(
        self,
        origin: Coordinate,
        destination: Coordinate,
        waypoints: Sequence[Waypoint],
        avoid_major_roads: bool,
    ) -> RouteResult | None:
        """Route from origin to destination passing through the given waypoints.

        Returns None instead of raising when OSRM is unreachable or finds no route.
        """
        coordinates = [origin, *(waypoint.coordinate for waypoint in waypoints), destination]
        try:
            data = self._route_request(coordinates, avoid_major_roads)
            return parse_route(data, origin, destination)
        except ProviderUnavailable as e:
            logger.warning(f"OSRM provider unavailable: {e}")
            return None
        except (KeyError, IndexError, TypeError) as e:
            logger.warning(f"Malformed OSRM route response: {e}")
            return None


def parse_route(data: dict, origin: Coordinate, destination: Coordinate) -> RouteResult:
    """Convert an OSRM route response into a RouteResult, decoding step geometry into leg points."""
    route = data["routes"][0]
    snapped = [
        Coordinate(latitude=wp["location"][1], longitude=wp["location"][0])
        for wp in data.get("waypoints", [])
    ]
    legs: list[RouteLeg] = []
    raw_legs = route.get("legs", [])
    for index, raw_leg in enumerate(raw_legs):
        start = snapped[index] if index < len(snapped) else origin
        end = snapped[index + 1] if index + 1 < len(snapped) else destination
        points: list[Coordinate] = []
        for step in raw_leg.get("steps", []):
            geometry = step.get("geometry")
            if isinstance(geometry, str) and geometry:
                points.extend(Coordinate(lat, lon) for lat, lon in decode_polyline(geometry))
        legs.append(
            RouteLeg(
                start=start,
                end=end,
                distance_m=float(raw_leg.get("distance", 0.0)),
                duration_s=float(raw_leg.get("duration", 0.0)),
                points=points,
            )
        )
    if not legs:
        legs.append(
            RouteLeg(
                start=origin,
                end=destination,
                distance_m=float(route["distance"]),
                duration_s=float(route["duration"]),
            )
        )
    return RouteResult.from_legs(legs)


def decode_polyline(polyline: str, precision: int = 5) -> list[tuple[float, float]]:
    """Decode Google polyline string to list of (lat, lon) coordinates.

    OSRM and Google Directions both use Google's polyline encoding format for route geometry.
    """
    coordinates = []
    index = 0
    lat = 0
    lon = 0
    factor = 10 ** precision

    while index < len(polyline):
        # Decode latitude
        shift = 0
        result = 0
        while True:
            b = ord(polyline[index]) - 63
            index += 1
            result |= (b & 0x1f) << shift
            shift += 5
            if b < 0x20:
                break
        dlat = ~(result >> 1) if (result & 1) else (result >> 1)
        lat += dlat

        # Decode longitude
        shift = 0
        result = 0
        while True:
            b = ord(polyline[index]) - 63
            index += 1
            result |= (b & 0x1f) << shift
            shift += 5
            if b < 0x20:
                break
        dlon = ~(result >> 1) if (result & 1) else (result >> 1)
        lon += dlon

        coordinates.append((lat / factor, lon / factor))

    return coordinates


def check_health(base_url: str | None = None) -> bool:
    """Check OSRM service health by routing between two fixed points in Johannesburg."""
    base = base_url or settings.osrm_base_url
    if not base:
        return False
    try:
        test_coords = "28.0473,-26.2041;28.0600,-26.1900"
        url = f"{base.rstrip('/')}/route/v1/{settings.osrm_profile}/{test_coords}"
        response = httpx.get(url, params={"overview": "false"}, timeout=5.0)
        response.raise_for_status()
        data = response.json()
        return data.get("code") == "Ok"
    except (httpx.HTTPError, ValueError):
        return False
