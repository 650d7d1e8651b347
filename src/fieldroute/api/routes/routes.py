"""Routing endpoints."""

from __future__ import annotations

import logging
from typing import Awaitable, TypeVar

from fastapi import APIRouter, HTTPException, Response, status

from ...data.locations_repository import LocationDirectoryError, LocationDirectoryNotConfiguredError
from ...schemas.routing import NavigationRequest, NavigationResponse, RoutePlanRequest, RoutePlanResponse
from ...services.export.gpx import GPX_MEDIA_TYPE
from ...services.routing.errors import MissingOriginError, SupersededPlanError
from ...services.routing.service import export_route_csv, export_route_gpx, optimize_route, route_navigation_links

router = APIRouter(prefix="/routes", tags=["routes"])

T = TypeVar("T")


async def _handle(action: str, call: Awaitable[T]) -> T:
    try:
        return await call
    except (MissingOriginError, SupersededPlanError) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except LocationDirectoryNotConfiguredError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except LocationDirectoryError as exc:
        logging.warning(f"Location directory error while trying to {action}: {exc}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error trying to {action}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to {action}: {str(exc)}",
        ) from exc


@router.post("/plan", response_model=RoutePlanResponse, status_code=status.HTTP_200_OK)
async def plan(payload: RoutePlanRequest) -> RoutePlanResponse:
    return await _handle("plan route", optimize_route(payload))


@router.post("/export/gpx", status_code=status.HTTP_200_OK)
async def export_gpx(payload: RoutePlanRequest) -> Response:
    """Plan the route and download it as a GPX track."""
    filename, document = await _handle("export route", export_route_gpx(payload))
    return Response(
        content=document,
        media_type=GPX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/export/csv", status_code=status.HTTP_200_OK)
async def export_csv(payload: RoutePlanRequest) -> Response:
    filename, document = await _handle("export route", export_route_csv(payload))
    return Response(
        content=document,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/navigation", response_model=NavigationResponse, status_code=status.HTTP_200_OK)
async def navigation(payload: NavigationRequest) -> NavigationResponse:
    """Plan the route and return directions links, chunked when it has too many stops."""
    return await _handle("build navigation links", route_navigation_links(payload))
