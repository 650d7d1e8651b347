"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""
    
    model_config = SettingsConfigDict(
        env_prefix="FIELDROUTE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Field Route Planner API"
    api_prefix: str = "/api"

    # Route optimization budget
    two_opt_max_iterations: int = Field(
        default=20000,
        ge=0,
        description="Candidate pairs examined by 2-opt before the best route so far is returned.",
    )
    two_opt_tolerance_m: float = Field(default=1e-6, ge=0.0)
    auto_start_sample_limit: int = Field(
        default=20,
        ge=2,
        description="Maximum number of start indices tried in automatic start mode.",
    )
    async_offload_threshold: int = Field(
        default=30,
        ge=0,
        description="Inputs with fewer points than this are planned synchronously.",
    )
    offload_enabled: bool = Field(
        default=True,
        description="Disable to force synchronous planning on hosts without worker processes.",
    )
    planning_session_limit: int = Field(
        default=256,
        ge=1,
        description="Planning sessions kept in memory; the least recently used one is dropped beyond this.",
    )

    # External navigation hand-off
    max_external_waypoints_per_request: int = Field(default=23, ge=1)
    navigation_stagger_ms: int = Field(default=250, ge=0)
    navigation_base_url: str = "https://www.google.com/maps/dir/"
    navigation_search_url: str = "https://www.google.com/maps/search/"
    navigation_travel_mode: Literal["driving", "walking", "bicycling", "transit"] = "driving"
    navigation_avoid_ferries: bool = False

    # GPX export
    gpx_creator: str = "RouteBuilder"
    gpx_track_name: str = "Route"
    current_position_label: str = "Current Location"

    # Location directory
    location_directory_url: Optional[str] = Field(
        default=None,
        description="Base URL of the location directory API (e.g., https://api.example.com).",
    )
    location_directory_timeout_seconds: float = Field(default=15.0, gt=0.0)
    location_directory_max_retries: int = Field(default=3, ge=0)
    location_directory_backoff_seconds: float = Field(default=1.0, ge=0.0)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "capacitor://localhost",
            "http://localhost",
        ),
        description="Permitted web origins for browser and WebView clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            # Try JSON first
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("location_directory_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text.rstrip("/") or None


settings = Settings()
