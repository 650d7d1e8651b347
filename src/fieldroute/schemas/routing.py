"""Routing request/response schemas."""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, model_validator

from ..services.routing.models import StartMode

Latitude = Annotated[float, Field(ge=-90, le=90, allow_inf_nan=False)]
Longitude = Annotated[float, Field(ge=-180, le=180, allow_inf_nan=False)]


class WaypointModel(BaseModel):
    id: str
    name: str = ""
    latitude: Latitude
    longitude: Longitude
    center: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class RoutePlanRequest(BaseModel):
    waypoints: Optional[List[WaypointModel]] = Field(
        default=None,
        description="Waypoints to visit. Takes precedence over location_ids.",
    )
    location_ids: Optional[List[str]] = Field(
        default=None,
        description="Ids resolved through the location directory when waypoints are not given inline.",
    )
    project_id: Optional[str] = None
    region_id: Optional[int] = None
    mode: StartMode = StartMode.AUTO
    fixed_start_id: Optional[str] = Field(
        default=None,
        description="Waypoint id to start from in fixed mode. Unknown ids fall back to the first waypoint.",
    )
    origin: Optional[Tuple[Latitude, Longitude]] = Field(
        default=None,
        description="Current device position as [lat, lng]; required in current mode.",
    )
    round_trip: bool = True
    session_id: Optional[str] = Field(
        default=None,
        description="Planning session key. Within a session only the latest request's result is returned.",
    )

    @model_validator(mode="after")
    def _require_selection(self) -> "RoutePlanRequest":
        if self.waypoints is None and self.location_ids is None:
            raise ValueError("Either waypoints or location_ids must be provided.")
        return self


class NavigationRequest(RoutePlanRequest):
    avoid_ferries: Optional[bool] = None


class RouteStopModel(BaseModel):
    sequence: int
    location_id: Optional[str]
    name: str
    center: Optional[str]
    latitude: float
    longitude: float
    distance_from_prev_m: float
    is_current_position: bool = False


class RoutePlanResponse(BaseModel):
    order: List[int]
    total_distance_m: float
    total_distance_km: float
    origin_is_current_position: bool
    origin_coordinate: Optional[Tuple[float, float]]
    round_trip: bool
    warnings: List[str]
    stops: List[RouteStopModel]
    metadata: dict


class NavigationLinkModel(BaseModel):
    url: str
    delay_ms: int
    point_count: int


class NavigationResponse(BaseModel):
    links: List[NavigationLinkModel]
    chunked: bool
