"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings
from ...services.routing.offloader import background_execution_available

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {
        "status": "ok",
        "background_planning": settings.offload_enabled and background_execution_available(),
    }


@router.get("/health/locations", status_code=status.HTTP_200_OK)
def health_locations() -> dict:
    """Check that the location directory is reachable."""
    from ...data.locations_repository import LocationDirectoryClient, LocationDirectoryNotConfiguredError

    try:
        client = LocationDirectoryClient()
    except LocationDirectoryNotConfiguredError as e:
        return {"service": "locations", "configured": False, "healthy": False, "error": str(e)}
    return {"service": "locations", "configured": True, "healthy": client.check_health()}
