"""Start-mode policy on top of the construction and improvement heuristics."""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import Point, Waypoint
from .errors import InvalidStartIndexError, MissingOriginError
from .heuristics import distance_matrix, nearest_neighbor, tour_length, two_opt
from .models import FIXED_START_UNRESOLVED, PlanRequest, PlanResult, StartMode

logger = logging.getLogger(__name__)


def auto_start_indices(n: int, limit: int) -> list[int]:
    """Start indices tried in automatic mode.

    Every index when ``n <= limit``; otherwise ``limit`` evenly spaced indices
    that always include the first and the last point.
    """
    if n <= limit:
        return list(range(n))
    starts = [0]
    for i in range(1, limit - 1):
        start = math.floor((i / (limit - 1)) * n)
        if start not in starts:
            starts.append(start)
    if n - 1 not in starts:
        starts.append(n - 1)
    return starts


def build_plan_request(
    selection: Sequence[Waypoint],
    mode: StartMode | str = StartMode.AUTO,
    fixed_start_id: Optional[str] = None,
    origin: Optional[Point] = None,
    round_trip: bool = True,
    *,
    auto_start_sample_limit: Optional[int] = None,
    two_opt_max_iterations: Optional[int] = None,
    two_opt_tolerance_m: Optional[float] = None,
) -> PlanRequest:
    """Resolve waypoints and the fixed start id into a plain-data ``PlanRequest``."""
    mode = StartMode(mode)
    fixed_start_index: Optional[int] = None
    if mode is StartMode.FIXED and fixed_start_id is not None:
        fixed_start_index = next(
            (index for index, waypoint in enumerate(selection) if waypoint.location_id == fixed_start_id),
            None,
        )
    return PlanRequest(
        points=tuple(waypoint.coordinates for waypoint in selection),
        mode=mode,
        fixed_start_index=fixed_start_index,
        origin=(float(origin[0]), float(origin[1])) if origin is not None else None,
        round_trip=round_trip,
        auto_start_sample_limit=(
            settings.auto_start_sample_limit if auto_start_sample_limit is None else auto_start_sample_limit
        ),
        two_opt_max_iterations=(
            settings.two_opt_max_iterations if two_opt_max_iterations is None else two_opt_max_iterations
        ),
        two_opt_tolerance_m=settings.two_opt_tolerance_m if two_opt_tolerance_m is None else two_opt_tolerance_m,
    )


def validate_request(request: PlanRequest) -> None:
    """Raise the typed failure a request would produce, without planning it."""
    if request.mode is StartMode.CURRENT and request.origin is None:
        raise MissingOriginError()
    if request.mode is StartMode.FIXED and request.fixed_start_index is not None:
        n = len(request.points)
        if n and not 0 <= request.fixed_start_index < n:
            raise InvalidStartIndexError(request.fixed_start_index, n)


def _solve_from(points: Sequence[Point], start: int, request: PlanRequest, matrix) -> tuple[list[int], float]:
    constructed = nearest_neighbor(points, start, matrix=matrix)
    improved = two_opt(
        constructed,
        points,
        max_iterations=request.two_opt_max_iterations,
        tolerance_m=request.two_opt_tolerance_m,
        matrix=matrix,
    )
    return improved, tour_length(improved, points, round_trip=request.round_trip, matrix=matrix)


def plan_route(request: PlanRequest) -> PlanResult:
    """Compute a visiting order for ``request``.

    ``current`` mode prepends the origin at index 0 and always starts there.
    ``fixed`` mode starts at ``fixed_start_index``, or at 0 with a
    ``fixed_start_unresolved`` warning when no index was resolved.
    ``auto`` mode keeps the cheapest result over the sampled start indices.
    """
    validate_request(request)

    if request.mode is StartMode.CURRENT:
        points = [request.origin, *request.points]
        order, total = _solve_from(points, 0, request, distance_matrix(points))
        logger.info(f"Planned route from current position: {len(points)} points, {total:.1f} m")
        return PlanResult(
            order=tuple(order),
            total_distance_m=total,
            origin_is_current_position=True,
            origin_coordinate=request.origin,
            round_trip=request.round_trip,
            starts_tried=(0,),
        )

    points = list(request.points)
    n = len(points)
    warnings: tuple[str, ...] = ()
    if request.mode is StartMode.FIXED:
        if request.fixed_start_index is None:
            logger.warning("Fixed start location is not part of the selection; starting from the first waypoint")
            warnings = (FIXED_START_UNRESOLVED,)
            starts = [0]
        else:
            starts = [request.fixed_start_index]
    else:
        starts = auto_start_indices(n, request.auto_start_sample_limit)

    if n == 0:
        return PlanResult(order=(), total_distance_m=0.0, round_trip=request.round_trip, warnings=warnings)

    matrix = distance_matrix(points)
    best_order: list[int] = []
    best_total = math.inf
    for start in starts:
        order, total = _solve_from(points, start, request, matrix)
        if total < best_total or not best_order:
            best_order, best_total = order, total

    logger.info(
        f"Planned route in {request.mode.value} mode: {n} points, "
        f"{len(starts)} start(s) tried, {best_total:.1f} m"
    )
    return PlanResult(
        order=tuple(best_order),
        total_distance_m=best_total,
        round_trip=request.round_trip,
        starts_tried=tuple(starts),
        warnings=warnings,
    )


def plan(
    selection: Sequence[Waypoint],
    mode: StartMode | str = StartMode.AUTO,
    fixed_start_id: Optional[str] = None,
    origin: Optional[Point] = None,
    round_trip: bool = True,
    **limits,
) -> PlanResult:
    """Plan a route over ``selection`` synchronously."""
    request = build_plan_request(selection, mode, fixed_start_id, origin, round_trip, **limits)
    return plan_route(request)
