"""Nearest-neighbor construction and 2-opt improvement over haversine distances.

Routes are lists of indices into a points array. Index 0 of a route is the
chosen start and is never moved by the improver, and neither is the last
index, so the closing edge of a round trip is unaffected by any swap.
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import Point
from ..geospatial import haversine_m
from .errors import InvalidStartIndexError, InvalidTourError

DistanceMatrix = Sequence[Sequence[float]]

logger = logging.getLogger(__name__)


def distance_matrix(points: Sequence[Point]) -> list[list[float]]:
    """Pairwise haversine distances in meters."""
    n = len(points)
    matrix = [[0.0] * n for _ in range(n)]
    for i in range(n):
        for j in range(i + 1, n):
            d = haversine_m(points[i], points[j])
            matrix[i][j] = d
            matrix[j][i] = d
    return matrix


def _check_permutation(route: Sequence[int], point_count: int) -> None:
    if len(route) != point_count or sorted(route) != list(range(point_count)):
        raise InvalidTourError(
            f"Route of length {len(route)} is not a permutation of {point_count} point indices."
        )


def nearest_neighbor(
    points: Sequence[Point],
    start_index: int = 0,
    *,
    matrix: Optional[DistanceMatrix] = None,
) -> list[int]:
    """Greedy tour from ``start_index``, always stepping to the closest unvisited point.

    Ties go to the lowest index. An empty points array gives an empty route;
    a start index outside the array raises ``InvalidStartIndexError``.
    """
    n = len(points)
    if n == 0:
        return []
    if isinstance(start_index, bool) or not 0 <= start_index < n:
        raise InvalidStartIndexError(start_index, n)

    visited = [False] * n
    route = [start_index]
    visited[start_index] = True
    for _ in range(1, n):
        last = route[-1]
        best = -1
        best_distance = math.inf
        for j in range(n):
            if visited[j]:
                continue
            d = matrix[last][j] if matrix is not None else haversine_m(points[last], points[j])
            if d < best_distance:
                best_distance = d
                best = j
        if best < 0:
            # every remaining distance is NaN; keep scan order
            best = visited.index(False)
        visited[best] = True
        route.append(best)
    return route


def two_opt(
    route: Sequence[int],
    points: Sequence[Point],
    *,
    max_iterations: Optional[int] = None,
    tolerance_m: Optional[float] = None,
    matrix: Optional[DistanceMatrix] = None,
) -> list[int]:
    """Improve ``route`` with 2-opt swaps until a local optimum or the iteration cap.

    Every candidate pair examined counts as one iteration across all passes.
    Once the counter exceeds ``max_iterations`` the best route found so far is
    returned, so a cap of 0 returns the input unchanged.
    """
    max_iterations = settings.two_opt_max_iterations if max_iterations is None else max_iterations
    tolerance_m = settings.two_opt_tolerance_m if tolerance_m is None else tolerance_m
    _check_permutation(route, len(points))

    best = list(route)
    n = len(best)
    if n < 4:
        return best

    if matrix is None:
        def dist(i: int, j: int) -> float:
            return haversine_m(points[i], points[j])
    else:
        def dist(i: int, j: int) -> float:
            return matrix[i][j]

    iterations = 0
    improved = True
    while improved:
        improved = False
        for i in range(1, n - 2):
            for k in range(i + 1, n - 1):
                iterations += 1
                if iterations > max_iterations:
                    logger.debug(f"2-opt stopped at iteration cap ({max_iterations}) for {n} points")
                    return best
                a, b, c, d = best[i - 1], best[i], best[k], best[k + 1]
                current = dist(a, b) + dist(c, d)
                swapped = dist(a, c) + dist(b, d)
                if swapped + tolerance_m < current:
                    best[i : k + 1] = best[i : k + 1][::-1]
                    improved = True
    return best


def tour_length(
    order: Sequence[int],
    points: Sequence[Point],
    *,
    round_trip: bool,
    matrix: Optional[DistanceMatrix] = None,
) -> float:
    """Sum of leg distances along ``order``, closing the loop for round trips."""

    def dist(i: int, j: int) -> float:
        return matrix[i][j] if matrix is not None else haversine_m(points[i], points[j])

    total = 0.0
    for current, following in zip(order, order[1:]):
        total += dist(current, following)
    if round_trip and len(order) > 1:
        total += dist(order[-1], order[0])
    return total
