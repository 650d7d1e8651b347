"""Serializers for planned routes: ordered stops, preview path, CSV."""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import Point, Waypoint
from ..geospatial import haversine_m
from ..routing.models import PlanResult


@dataclass(slots=True)
class OrderedStop:
    sequence: int
    location_id: Optional[str]
    name: str
    center: Optional[str]
    latitude: float
    longitude: float
    distance_from_prev_m: float
    is_current_position: bool = False


def _resolve_index(
    index: int, selection: Sequence[Waypoint], result: PlanResult, current_label: str
) -> tuple[Point, Optional[Waypoint], str]:
    """Map a tour index back to its coordinate, waypoint and display name."""
    if result.origin_is_current_position and result.origin_coordinate is not None:
        if index == 0:
            return result.origin_coordinate, None, current_label
        index -= 1
    waypoint = selection[index]
    return waypoint.coordinates, waypoint, waypoint.name or f"Stop {index + 1}"


def ordered_coordinates(result: PlanResult, selection: Sequence[Waypoint]) -> list[Point]:
    """Coordinates in visiting order; round trips repeat the start at the end."""
    coordinates = [
        _resolve_index(index, selection, result, settings.current_position_label)[0] for index in result.order
    ]
    if result.round_trip and len(coordinates) > 1:
        coordinates.append(coordinates[0])
    return coordinates


def build_ordered_stops(
    result: PlanResult,
    selection: Sequence[Waypoint],
    *,
    current_label: Optional[str] = None,
) -> list[OrderedStop]:
    label = current_label or settings.current_position_label
    stops: list[OrderedStop] = []
    previous: Optional[Point] = None
    for sequence, index in enumerate(result.order, start=1):
        point, waypoint, name = _resolve_index(index, selection, result, label)
        stops.append(
            OrderedStop(
                sequence=sequence,
                location_id=waypoint.location_id if waypoint else None,
                name=name,
                center=waypoint.center if waypoint else None,
                latitude=point[0],
                longitude=point[1],
                distance_from_prev_m=haversine_m(previous, point) if previous is not None else 0.0,
                is_current_position=waypoint is None,
            )
        )
        previous = point
    return stops


def plan_result_to_csv(result: PlanResult, selection: Sequence[Waypoint]) -> str:
    buffer = io.StringIO()
    fieldnames = [
        "sequence",
        "location_id",
        "name",
        "center",
        "latitude",
        "longitude",
        "distance_from_prev_m",
        "total_distance_m",
        "round_trip",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for stop in build_ordered_stops(result, selection):
        writer.writerow(
            {
                "sequence": stop.sequence,
                "location_id": stop.location_id or "",
                "name": stop.name,
                "center": stop.center or "",
                "latitude": stop.latitude,
                "longitude": stop.longitude,
                "distance_from_prev_m": round(stop.distance_from_prev_m, 1),
                "total_distance_m": round(result.total_distance_m, 1),
                "round_trip": result.round_trip,
            }
        )
    return buffer.getvalue()
