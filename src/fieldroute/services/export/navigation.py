"""Directions links for handing a planned route to an external maps app."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence
from urllib.parse import quote, urlencode

from ...config import settings
from ...models.domain import Point


@dataclass(slots=True, frozen=True)
class NavigationLink:
    url: str
    delay_ms: int
    point_count: int


def _segment(point: Point) -> str:
    return quote(f"{point[0]},{point[1]}", safe="")


def build_navigation_links(
    coordinates: Sequence[Point],
    *,
    round_trip: bool,
    max_waypoints: Optional[int] = None,
    stagger_ms: Optional[int] = None,
    avoid_ferries: Optional[bool] = None,
    travel_mode: Optional[str] = None,
    base_url: Optional[str] = None,
    search_url: Optional[str] = None,
) -> list[NavigationLink]:
    """Build one or more directions URLs for ``coordinates`` in visiting order.

    The first coordinate is the origin. Intermediate stops beyond
    ``max_waypoints`` are split into sequential chunks; each chunk continues
    from where the previous one ended and only the final chunk returns to the
    origin on a round trip. A single coordinate yields a search link.
    """
    max_waypoints = max_waypoints or settings.max_external_waypoints_per_request
    stagger_ms = settings.navigation_stagger_ms if stagger_ms is None else stagger_ms
    avoid_ferries = settings.navigation_avoid_ferries if avoid_ferries is None else avoid_ferries
    travel_mode = travel_mode or settings.navigation_travel_mode
    base_url = base_url or settings.navigation_base_url
    search_url = search_url or settings.navigation_search_url

    if not coordinates:
        return []
    if len(coordinates) == 1:
        query = urlencode({"api": 1, "query": f"{coordinates[0][0]},{coordinates[0][1]}"})
        return [NavigationLink(url=f"{search_url}?{query}", delay_ms=0, point_count=1)]

    params = {"travelmode": travel_mode}
    if avoid_ferries:
        params["avoid"] = "ferries"
    query = urlencode(params)

    origin = coordinates[0]
    destination = origin if round_trip else coordinates[-1]
    stops = list(coordinates[1:]) if round_trip else list(coordinates[1:-1])

    def link(path: Sequence[Point], chunk_index: int) -> NavigationLink:
        joined = "/".join(_segment(point) for point in path)
        return NavigationLink(
            url=f"{base_url}{joined}?{query}",
            delay_ms=chunk_index * stagger_ms,
            point_count=len(path),
        )

    if len(stops) <= max_waypoints:
        return [link([origin, *stops, destination], 0)]

    links: list[NavigationLink] = []
    start = origin
    for chunk_index, offset in enumerate(range(0, len(stops), max_waypoints)):
        chunk = stops[offset : offset + max_waypoints]
        is_last = offset + max_waypoints >= len(stops)
        path = [start, *chunk]
        if is_last:
            path.append(destination)
        links.append(link(path, chunk_index))
        start = chunk[-1]
    return links
