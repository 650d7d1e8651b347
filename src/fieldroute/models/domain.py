"""Domain models for waypoints and coordinates."""

from dataclasses import dataclass, field
from typing import Optional

Point = tuple[float, float]
"""A (latitude, longitude) pair in degrees."""


@dataclass(slots=True, frozen=True)
class Waypoint:
    """A named location from the directory that can be visited on a route."""

    location_id: str
    name: str
    latitude: float
    longitude: float
    center: Optional[str] = None
    raw: dict = field(default_factory=dict, compare=False, hash=False)

    @property
    def coordinates(self) -> Point:
        return (self.latitude, self.longitude)
