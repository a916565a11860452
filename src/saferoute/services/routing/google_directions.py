"""HTTP client for the Google Directions web service."""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from ...config import settings
from ...models.domain import Coordinate, RouteLeg, RouteResult, Waypoint
from .osrm_client import decode_polyline
from .provider import ProviderUnavailable

DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"
# Directions accepts 25 intermediate points; two slots are left for origin and destination.
MAX_WAYPOINTS = 23

logger = logging.getLogger(__name__)


def _latlng(coordinate: Coordinate) -> str:
    return f"{coordinate.latitude},{coordinate.longitude}"


def _location(raw: dict) -> Coordinate:
    return Coordinate(latitude=float(raw["lat"]), longitude=float(raw["lng"]))


class GoogleDirectionsClient:
    def __init__(
        self,
        api_key: str | None = None,
        timeout: float | None = None,
        base_url: str = DIRECTIONS_URL,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or settings.google_maps_api_key
        if not self.api_key:
            raise ValueError("Google Maps API key is not configured.")
        self.timeout = timeout if timeout is not None else settings.provider_timeout_seconds
        self.base_url = base_url
        self._transport = transport

    def _build_params(
        self,
        origin: Coordinate,
        destination: Coordinate,
        waypoints: Sequence[Waypoint],
        avoid_major_roads: bool,
    ) -> dict:
        params = {
            "origin": _latlng(origin),
            "destination": _latlng(destination),
            "mode": "driving",
            "key": self.api_key,
        }
        if len(waypoints) > MAX_WAYPOINTS:
            logger.warning(
                f"Directions accepts {MAX_WAYPOINTS} waypoints; dropping {len(waypoints) - MAX_WAYPOINTS} of {len(waypoints)}"
            )
        if waypoints:
            # "via:" marks a pass-through point so Google does not split the route into legs.
            params["waypoints"] = "|".join(
                ("" if waypoint.stopover else "via:") + _latlng(waypoint.coordinate)
                for waypoint in waypoints[:MAX_WAYPOINTS]
            )
        if avoid_major_roads:
            params["avoid"] = "highways"
        return params

    def _directions_request(self, params: dict) -> dict:
        client = httpx.Client(timeout=httpx.Timeout(self.timeout), transport=self._transport)
        try:
            response = client.get(self.base_url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise ProviderUnavailable(f"Directions request timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            raise ProviderUnavailable(f"Directions request failed with HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderUnavailable(f"Failed to reach Directions service: {e}") from e
        finally:
            client.close()

        status = data.get("status")
        if status != "OK" or not data.get("routes"):
            detail = data.get("error_message") or status or "Unknown Directions error"
            raise ProviderUnavailable(f"Directions request failed: {detail}")
        return data

    def compute_route(
        self,
        origin: Coordinate,
        destination: Coordinate,
        waypoints: Sequence[Waypoint],
        avoid_major_roads: bool,
    ) -> RouteResult | None:
        params = self._build_params(origin, destination, waypoints, avoid_major_roads)
        try:
            data = self._directions_request(params)
            return parse_directions(data)
        except ProviderUnavailable as e:
            logger.warning(f"Google Directions provider unavailable: {e}")
            return None
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.warning(f"Malformed Directions response: {e}")
            return None


def parse_directions(data: dict) -> RouteResult:
    """Convert a Directions response into a RouteResult using step polylines as leg points."""
    legs: list[RouteLeg] = []
    for raw_leg in data["routes"][0]["legs"]:
        points: list[Coordinate] = []
        for step in raw_leg.get("steps", []):
            encoded = step.get("polyline", {}).get("points")
            if encoded:
                points.extend(Coordinate(lat, lon) for lat, lon in decode_polyline(encoded))
        legs.append(
            RouteLeg(
                start=_location(raw_leg["start_location"]),
                end=_location(raw_leg["end_location"]),
                distance_m=float(raw_leg["distance"]["value"]),
                duration_s=float(raw_leg["duration"]["value"]),
                points=points,
            )
        )
    return RouteResult.from_legs(legs)
