"""Safe routing request/response schemas."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class CoordinateModel(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)


class HotspotModel(BaseModel):
    id: str = Field(..., min_length=1, description="Stable identifier of the hotspot.")
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)


class SearchOverrides(BaseModel):
    detection_radius_m: Optional[float] = Field(None, gt=0)
    deadline_ms: Optional[int] = Field(None, ge=1, le=60000)
    waypoint_cap: Optional[int] = Field(None, ge=1, le=23)
    max_parallel_requests: Optional[int] = Field(None, ge=1, le=32)


class SafeRouteRequest(BaseModel):
    origin: CoordinateModel
    destination: CoordinateModel
    hotspots: List[HotspotModel] = Field(default_factory=list)
    config: Optional[SearchOverrides] = None
    provider: Optional[Literal["osrm", "google"]] = Field(
        default=None,
        description="Routing backend for this request. Defaults to the configured provider.",
    )


class RouteModel(BaseModel):
    distance_m: float
    duration_s: float
    hotspots_on_path: List[str]
    coordinates: List[List[float]] = Field(
        default_factory=list,
        description="Sampled path as [lat, lng] pairs.",
    )


class SafeRouteResponse(BaseModel):
    found: bool
    route: Optional[RouteModel] = None
    baseline: Optional[RouteModel] = None
    caution: Optional[str] = None
    metadata: dict
