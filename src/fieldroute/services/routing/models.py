"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ...models.domain import Point

FIXED_START_UNRESOLVED = "fixed_start_unresolved"


class StartMode(str, Enum):
    AUTO = "auto"
    FIXED = "fixed"
    CURRENT = "current"


@dataclass(slots=True, frozen=True)
class PlanRequest:
    """Plain-data planning input; safe to copy into a worker process."""

    points: tuple[Point, ...]
    mode: StartMode = StartMode.AUTO
    fixed_start_index: Optional[int] = None
    origin: Optional[Point] = None
    round_trip: bool = True
    auto_start_sample_limit: int = 20
    two_opt_max_iterations: int = 20000
    two_opt_tolerance_m: float = 1e-6

    def to_dict(self) -> dict[str, Any]:
        return {
            "points": [list(point) for point in self.points],
            "mode": self.mode.value,
            "fixed_start_index": self.fixed_start_index,
            "origin": list(self.origin) if self.origin is not None else None,
            "round_trip": self.round_trip,
            "auto_start_sample_limit": self.auto_start_sample_limit,
            "two_opt_max_iterations": self.two_opt_max_iterations,
            "two_opt_tolerance_m": self.two_opt_tolerance_m,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "PlanRequest":
        origin = payload.get("origin")
        return cls(
            points=tuple((float(lat), float(lon)) for lat, lon in payload["points"]),
            mode=StartMode(payload["mode"]),
            fixed_start_index=payload.get("fixed_start_index"),
            origin=(float(origin[0]), float(origin[1])) if origin is not None else None,
            round_trip=bool(payload["round_trip"]),
            auto_start_sample_limit=int(payload["auto_start_sample_limit"]),
            two_opt_max_iterations=int(payload["two_opt_max_iterations"]),
            two_opt_tolerance_m=float(payload["two_opt_tolerance_m"]),
        )


@dataclass(slots=True, frozen=True)
class PlanResult:
    order: tuple[int, ...]
    total_distance_m: float
    origin_is_current_position: bool = False
    origin_coordinate: Optional[Point] = None
    round_trip: bool = True
    starts_tried: tuple[int, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def total_distance_km(self) -> float:
        return self.total_distance_m / 1000.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "order": list(self.order),
            "total_distance_m": self.total_distance_m,
            "origin_is_current_position": self.origin_is_current_position,
            "origin_coordinate": list(self.origin_coordinate) if self.origin_coordinate else None,
            "round_trip": self.round_trip,
            "starts_tried": list(self.starts_tried),
            "warnings": list(self.warnings),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "PlanResult":
        origin = payload.get("origin_coordinate")
        return cls(
            order=tuple(int(index) for index in payload["order"]),
            total_distance_m=float(payload["total_distance_m"]),
            origin_is_current_position=bool(payload.get("origin_is_current_position", False)),
            origin_coordinate=(float(origin[0]), float(origin[1])) if origin else None,
            round_trip=bool(payload.get("round_trip", True)),
            starts_tried=tuple(int(index) for index in payload.get("starts_tried", ())),
            warnings=tuple(str(item) for item in payload.get("warnings", ())),
        )
