"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_osrm_health_check():
    """Lazy import to avoid startup failures."""
    from ...services.routing.osrm_client import check_health as osrm_health_check
    return osrm_health_check


@router.get("/health/provider", status_code=status.HTTP_200_OK)
def health_provider() -> dict:
    """Check the configured routing provider."""
    provider = settings.routing_provider
    if provider == "google":
        # Directions calls are billed; only report whether a key is present.
        configured = bool(settings.google_maps_api_key)
        return {"service": "google", "healthy": configured, "configured": configured}
    try:
        osrm_health_check = _get_osrm_health_check()
        return {"service": "osrm", "healthy": osrm_health_check(), "configured": bool(settings.osrm_base_url)}
    except Exception as e:
        return {"service": "osrm", "healthy": False, "error": str(e)}
