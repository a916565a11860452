"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="SAFEROUTE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "SafeRoute Planner API"
    api_prefix: str = "/api"
    routing_provider: Literal["osrm", "google"] = Field(
        default="osrm",
        description="Which routing backend computes candidate routes.",
    )
    osrm_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_profile: Literal["driving", "walking", "cycling"] = Field(
        default="driving",
        description="OSRM profile to use when computing routes.",
    )
    google_maps_api_key: Optional[str] = Field(
        default=None,
        description="API key for the Google Directions web service.",
    )
    provider_timeout_seconds: float = Field(
        default=4.0,
        gt=0.0,
        description="HTTP timeout for a single routing provider call.",
    )
    detection_radius_m: float = Field(
        default=500.0,
        gt=0.0,
        description="Distance within which a route is considered to pass through a hotspot.",
    )
    deadline_ms: int = Field(default=5000, ge=1, description="Wall-clock budget for one planning call.")
    waypoint_cap: int = Field(
        default=23,
        ge=1,
        description="Maximum via-points the routing provider accepts in a single request.",
    )
    max_parallel_requests: int = Field(
        default=8,
        ge=1,
        description="Concurrent provider calls issued within a search phase.",
    )
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            # Try JSON first
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
