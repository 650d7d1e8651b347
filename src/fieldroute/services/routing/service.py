"""Routing orchestration service."""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import asdict
from typing import Sequence

from fastapi.concurrency import run_in_threadpool

from ...config import settings
from ...data.locations_repository import LocationDirectoryClient, select_waypoints
from ...models.domain import Waypoint
from ...schemas.routing import (
    NavigationLinkModel,
    NavigationRequest,
    NavigationResponse,
    RoutePlanRequest,
    RoutePlanResponse,
    RouteStopModel,
)
from ..export.gpx import build_gpx, gpx_filename
from ..export.navigation import build_navigation_links
from ..outputs.routing_formatter import build_ordered_stops, ordered_coordinates, plan_result_to_csv
from .errors import SupersededPlanError
from .models import PlanResult
from .offloader import RouteOffloader
from .planner import build_plan_request
from .session import PlanningSession

logger = logging.getLogger(__name__)

_sessions: "OrderedDict[str, PlanningSession]" = OrderedDict()


def _inline_waypoints(payload: RoutePlanRequest) -> list[Waypoint]:
    waypoints: list[Waypoint] = []
    seen: set[str] = set()
    for item in payload.waypoints or []:
        if item.id in seen:
            logger.warning(f"Waypoint {item.id} listed more than once, using first occurrence")
            continue
        seen.add(item.id)
        waypoints.append(
            Waypoint(
                location_id=item.id,
                name=item.name,
                latitude=item.latitude,
                longitude=item.longitude,
                center=item.center,
                raw=dict(item.metadata),
            )
        )
    return waypoints


def _directory_waypoints(payload: RoutePlanRequest) -> list[Waypoint]:
    client = LocationDirectoryClient()
    waypoints = client.list_waypoints(project_id=payload.project_id, region_id=payload.region_id)
    return select_waypoints(waypoints, payload.location_ids or [])


async def resolve_selection(payload: RoutePlanRequest) -> list[Waypoint]:
    if payload.waypoints is not None:
        return _inline_waypoints(payload)
    return await run_in_threadpool(_directory_waypoints, payload)


def _session_for(session_id: str) -> PlanningSession:
    session = _sessions.get(session_id)
    if session is None:
        session = PlanningSession(RouteOffloader())
        _sessions[session_id] = session
        while len(_sessions) > settings.planning_session_limit:
            evicted, _ = _sessions.popitem(last=False)
            logger.debug(f"Dropping planning session {evicted}")
    else:
        _sessions.move_to_end(session_id)
    return session


async def plan_for_request(payload: RoutePlanRequest) -> tuple[list[Waypoint], PlanResult]:
    selection = await resolve_selection(payload)
    request = build_plan_request(
        selection,
        payload.mode,
        payload.fixed_start_id,
        payload.origin,
        payload.round_trip,
    )
    if payload.session_id is None:
        return selection, await RouteOffloader().compute(request)

    result = await _session_for(payload.session_id).request(request)
    if result is None:
        raise SupersededPlanError(payload.session_id)
    return selection, result


def build_plan_response(selection: Sequence[Waypoint], result: PlanResult) -> RoutePlanResponse:
    stops = build_ordered_stops(result, selection)
    path = ordered_coordinates(result, selection)
    return RoutePlanResponse(
        order=list(result.order),
        total_distance_m=result.total_distance_m,
        total_distance_km=result.total_distance_km,
        origin_is_current_position=result.origin_is_current_position,
        origin_coordinate=result.origin_coordinate,
        round_trip=result.round_trip,
        warnings=list(result.warnings),
        stops=[RouteStopModel(**asdict(stop)) for stop in stops],
        metadata={
            "starts_tried": list(result.starts_tried),
            "stop_count": len(stops),
            "map_overlays": {
                "route": {
                    "coordinates": [[lat, lon] for lat, lon in path],
                    "closed": result.round_trip and len(result.order) > 1,
                }
            },
        },
    )


async def optimize_route(payload: RoutePlanRequest) -> RoutePlanResponse:
    selection, result = await plan_for_request(payload)
    return build_plan_response(selection, result)


async def export_route_gpx(payload: RoutePlanRequest) -> tuple[str, str]:
    """Plan the route and return ``(filename, gpx_document)``."""
    selection, result = await plan_for_request(payload)
    if not result.order:
        raise ValueError("No waypoints selected; nothing to export.")
    return gpx_filename(), build_gpx(result, selection)


async def export_route_csv(payload: RoutePlanRequest) -> tuple[str, str]:
    """Plan the route and return ``(filename, csv_document)`` with one row per stop."""
    selection, result = await plan_for_request(payload)
    if not result.order:
        raise ValueError("No waypoints selected; nothing to export.")
    return gpx_filename(extension="csv"), plan_result_to_csv(result, selection)


async def route_navigation_links(payload: NavigationRequest) -> NavigationResponse:
    selection, result = await plan_for_request(payload)
    if not result.order:
        raise ValueError("No waypoints selected; nothing to navigate.")
    coordinates = ordered_coordinates(result, selection)
    if result.round_trip and len(coordinates) > 1:
        # the link builder closes the loop itself
        coordinates = coordinates[:-1]
    links = build_navigation_links(
        coordinates,
        round_trip=result.round_trip,
        avoid_ferries=payload.avoid_ferries,
    )
    if len(links) > 1:
        logger.info(f"Navigation split into {len(links)} requests for {len(coordinates)} points")
    return NavigationResponse(
        links=[NavigationLinkModel(url=link.url, delay_ms=link.delay_ms, point_count=link.point_count) for link in links],
        chunked=len(links) > 1,
    )
