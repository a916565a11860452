"""Safe routing endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.routing import SafeRouteRequest, SafeRouteResponse
from ...services.routing.service import plan_route

router = APIRouter(prefix="/routes", tags=["routes"])


@router.post("/safe", response_model=SafeRouteResponse, status_code=status.HTTP_200_OK)
def safe_route(payload: SafeRouteRequest) -> SafeRouteResponse:
    try:
        return plan_route(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error planning safe route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to plan route: {str(exc)}"
        ) from exc
