"""HTTP client for the location directory that supplies candidate waypoints."""

from __future__ import annotations

import logging
import time
from typing import Any, Iterable, Optional, Sequence

import httpx

from ..config import settings
from ..models.domain import Waypoint

logger = logging.getLogger(__name__)

_KNOWN_COLUMNS = {"id", "name", "center", "latitude", "longitude"}


class LocationDirectoryError(ConnectionError):
    """The location directory could not be reached or returned an invalid payload."""


class LocationDirectoryNotConfiguredError(LocationDirectoryError):
    """No location directory URL is set, so ids cannot be resolved."""


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def row_to_waypoint(row: dict[str, Any]) -> Optional[Waypoint]:
    """Map a directory row to a ``Waypoint``; rows without coordinates are skipped."""
    latitude = _to_float(row.get("latitude"))
    longitude = _to_float(row.get("longitude"))
    location_id = row.get("id")
    if latitude is None or longitude is None or location_id is None:
        return None
    return Waypoint(
        location_id=str(location_id),
        name=str(row.get("name") or ""),
        latitude=latitude,
        longitude=longitude,
        center=row.get("center") or None,
        raw={key: value for key, value in row.items() if key not in _KNOWN_COLUMNS},
    )


def select_waypoints(waypoints: Iterable[Waypoint], location_ids: Sequence[str]) -> list[Waypoint]:
    """Resolve ids in caller order, dropping unknown and repeated ids."""
    lookup = {waypoint.location_id: waypoint for waypoint in waypoints}
    selected: list[Waypoint] = []
    seen: set[str] = set()
    for raw_id in location_ids:
        location_id = str(raw_id).strip()
        if location_id in seen:
            continue
        waypoint = lookup.get(location_id)
        if waypoint is None:
            logger.warning(f"Location {location_id} not found in directory, skipping")
            continue
        seen.add(location_id)
        selected.append(waypoint)
    return selected


class LocationDirectoryClient:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.location_directory_url
        if not self.base_url:
            raise LocationDirectoryNotConfiguredError("Location directory URL is not configured.")
        self.base_url = self.base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else settings.location_directory_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.location_directory_max_retries
        self.backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else settings.location_directory_backoff_seconds
        )
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            transport=self._transport,
        )

    def _get_json(self, path: str, params: dict[str, str] | None = None) -> Any:
        url = f"{self.base_url}{path}"
        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url, params=params)
                    response.raise_for_status()
                    return response.json()
                except httpx.HTTPStatusError as exc:
                    # client errors will not improve with a retry
                    if exc.response.status_code < 500:
                        raise LocationDirectoryError(
                            f"Location directory rejected request {url}: HTTP {exc.response.status_code}"
                        ) from exc
                    attempt += 1
                    if attempt > self.max_retries:
                        raise LocationDirectoryError(
                            f"Location directory failed after {self.max_retries} retries: HTTP {exc.response.status_code}"
                        ) from exc
                    logger.debug(f"Location directory returned {exc.response.status_code}, retrying (attempt {attempt})")
                    time.sleep(self.backoff_seconds * attempt)
                except (httpx.TimeoutException, httpx.NetworkError) as exc:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"Location directory unreachable after {self.max_retries} retries: {exc}")
                        raise LocationDirectoryError(
                            f"Failed to connect to location directory at {self.base_url}: {exc}"
                        ) from exc
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"Location directory network error, retrying in {wait_time:.1f}s: {exc}")
                    time.sleep(wait_time)
                except ValueError as exc:
                    raise LocationDirectoryError(f"Location directory returned invalid JSON: {exc}") from exc
        finally:
            client.close()

    def list_waypoints(
        self,
        *,
        project_id: str | None = None,
        region_id: int | None = None,
    ) -> list[Waypoint]:
        params: dict[str, str] = {}
        if project_id is not None and str(project_id).strip():
            params["project_id"] = str(project_id).strip()
        if region_id is not None:
            params["region_id"] = str(region_id)

        payload = self._get_json("/locations", params or None)
        rows = payload.get("data") if isinstance(payload, dict) else payload
        if rows is None:
            rows = []
        if not isinstance(rows, list):
            raise LocationDirectoryError("Location directory response has no list of locations.")

        waypoints: list[Waypoint] = []
        skipped = 0
        for row in rows:
            waypoint = row_to_waypoint(row) if isinstance(row, dict) else None
            if waypoint is None:
                skipped += 1
                continue
            waypoints.append(waypoint)
        if skipped:
            logger.warning(f"Skipped {skipped} directory rows without an id or numeric coordinates")
        return waypoints

    def check_health(self) -> bool:
        try:
            self._get_json("/health")
        except LocationDirectoryError:
            return False
        return True
