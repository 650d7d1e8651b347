import httpx
import pytest

from fieldroute.data.locations_repository import (
    LocationDirectoryClient,
    LocationDirectoryError,
    LocationDirectoryNotConfiguredError,
    row_to_waypoint,
    select_waypoints,
)
from fieldroute.models.domain import Waypoint

ROWS = [
    {"id": 1, "name": "Substation 1", "center": "Kadikoy", "latitude": 40.99, "longitude": 29.03, "region_id": 4},
    {"id": "2", "name": "Substation 2", "center": None, "latitude": "41.01", "longitude": "28.97"},
    {"id": 3, "name": "No coords", "latitude": None, "longitude": 29.0},
    {"name": "No id", "latitude": 41.0, "longitude": 29.0},
]


def _client(handler, **kwargs) -> LocationDirectoryClient:
    return LocationDirectoryClient(
        base_url="https://directory.test/api/",
        backoff_seconds=0.0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def test_row_to_waypoint_maps_known_columns_and_keeps_extras():
    waypoint = row_to_waypoint(ROWS[0])
    assert waypoint == Waypoint(location_id="1", name="Substation 1", latitude=40.99, longitude=29.03, center="Kadikoy")
    assert waypoint.raw == {"region_id": 4}


def test_row_to_waypoint_skips_rows_without_coordinates_or_id():
    assert row_to_waypoint(ROWS[2]) is None
    assert row_to_waypoint(ROWS[3]) is None


def test_list_waypoints_unwraps_data_and_passes_filters():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        return httpx.Response(200, json={"data": ROWS})

    waypoints = _client(handler).list_waypoints(project_id="7", region_id=4)

    assert [w.location_id for w in waypoints] == ["1", "2"]
    assert waypoints[1].coordinates == (41.01, 28.97)
    assert seen["url"].startswith("https://directory.test/api/locations?")
    assert "project_id=7" in seen["url"] and "region_id=4" in seen["url"]


def test_list_waypoints_retries_server_errors():
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        if calls["count"] < 3:
            return httpx.Response(503)
        return httpx.Response(200, json={"data": ROWS[:1]})

    waypoints = _client(handler, max_retries=3).list_waypoints()

    assert calls["count"] == 3
    assert len(waypoints) == 1


def test_list_waypoints_gives_up_after_max_retries():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(LocationDirectoryError):
        _client(handler, max_retries=1).list_waypoints()


def test_client_errors_are_not_retried():
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(404)

    with pytest.raises(LocationDirectoryError):
        _client(handler, max_retries=3).list_waypoints()
    assert calls["count"] == 1


def test_invalid_json_raises_directory_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>oops</html>")

    with pytest.raises(LocationDirectoryError):
        _client(handler).list_waypoints()


def test_check_health():
    assert _client(lambda request: httpx.Response(200, json={"status": "ok"})).check_health() is True
    assert _client(lambda request: httpx.Response(404), max_retries=0).check_health() is False


def test_client_requires_base_url(monkeypatch):
    from fieldroute.config import settings

    monkeypatch.setattr(settings, "location_directory_url", None)
    with pytest.raises(LocationDirectoryNotConfiguredError):
        LocationDirectoryClient()


def test_select_waypoints_keeps_caller_order_and_drops_duplicates():
    waypoints = [row_to_waypoint(ROWS[0]), row_to_waypoint(ROWS[1])]
    selected = select_waypoints(waypoints, ["2", "1", "2", "missing"])
    assert [w.location_id for w in selected] == ["2", "1"]
