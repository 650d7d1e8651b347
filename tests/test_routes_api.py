from collections import OrderedDict

import pytest
from fastapi.testclient import TestClient

from fieldroute.config import settings
from fieldroute.main import create_app
from fieldroute.models.domain import Waypoint
from fieldroute.services.routing import service as routing_service
from fieldroute.services.routing.offloader import RouteOffloader


def _waypoints(count: int) -> list[dict]:
    return [
        {
            "id": f"L{i}",
            "name": f"Location {i}",
            "latitude": 41.0 + ((i * 37) % 17) * 0.013,
            "longitude": 29.0 + ((i * 53) % 23) * 0.011,
            "center": "Center",
        }
        for i in range(count)
    ]


@pytest.fixture()
def client(monkeypatch):
    monkeypatch.setattr(routing_service, "RouteOffloader", lambda: RouteOffloader(enabled=False))
    monkeypatch.setattr(routing_service, "_sessions", OrderedDict())
    return TestClient(create_app())


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_plan_route_returns_order_stops_and_overlay(client):
    response = client.post("/api/routes/plan", json={"waypoints": _waypoints(6), "round_trip": True})

    assert response.status_code == 200
    body = response.json()
    assert sorted(body["order"]) == list(range(6))
    assert body["total_distance_m"] > 0
    assert body["total_distance_km"] == pytest.approx(body["total_distance_m"] / 1000)
    assert len(body["stops"]) == 6
    overlay = body["metadata"]["map_overlays"]["route"]
    assert len(overlay["coordinates"]) == 7
    assert overlay["coordinates"][0] == overlay["coordinates"][-1]
    assert overlay["closed"] is True


def test_plan_route_current_mode_without_origin_is_conflict(client):
    response = client.post("/api/routes/plan", json={"waypoints": _waypoints(3), "mode": "current"})
    assert response.status_code == 409


def test_plan_route_current_mode_with_origin(client):
    response = client.post(
        "/api/routes/plan",
        json={"waypoints": _waypoints(3), "mode": "current", "origin": [41.05, 29.05], "round_trip": False},
    )
    body = response.json()
    assert response.status_code == 200
    assert body["origin_is_current_position"] is True
    assert body["stops"][0]["is_current_position"] is True
    assert body["order"][0] == 0


def test_plan_route_fixed_mode_unknown_start_reports_warning(client):
    response = client.post(
        "/api/routes/plan",
        json={"waypoints": _waypoints(4), "mode": "fixed", "fixed_start_id": "nope"},
    )
    body = response.json()
    assert response.status_code == 200
    assert body["order"][0] == 0
    assert body["warnings"] == ["fixed_start_unresolved"]


def test_plan_route_requires_a_selection(client):
    assert client.post("/api/routes/plan", json={"mode": "auto"}).status_code == 422


def test_plan_route_resolves_location_ids_through_directory(client, monkeypatch):
    directory = [
        Waypoint(location_id=item["id"], name=item["name"], latitude=item["latitude"], longitude=item["longitude"])
        for item in _waypoints(5)
    ]

    class DummyDirectory:
        def list_waypoints(self, *, project_id=None, region_id=None):
            return directory

    monkeypatch.setattr(routing_service, "LocationDirectoryClient", lambda: DummyDirectory())

    response = client.post("/api/routes/plan", json={"location_ids": ["L3", "L1", "L3"], "round_trip": False})

    body = response.json()
    assert response.status_code == 200
    assert {stop["location_id"] for stop in body["stops"]} == {"L1", "L3"}


def test_export_gpx(client):
    response = client.post("/api/routes/export/gpx", json={"waypoints": _waypoints(3), "round_trip": True})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/gpx+xml")
    assert response.headers["content-disposition"].startswith('attachment; filename="route-')
    assert response.text.count("<trkpt") == 4


def test_export_gpx_empty_selection_is_bad_request(client):
    assert client.post("/api/routes/export/gpx", json={"waypoints": []}).status_code == 400


def test_navigation_links_are_chunked_for_long_routes(client):
    response = client.post(
        "/api/routes/navigation",
        json={"waypoints": _waypoints(30), "round_trip": True, "avoid_ferries": True},
    )

    body = response.json()
    assert response.status_code == 200
    assert body["chunked"] is True
    assert len(body["links"]) == 2
    assert body["links"][1]["delay_ms"] > 0
    assert all(link["url"].endswith("&avoid=ferries") for link in body["links"])


@pytest.mark.parametrize("origin", [[999, 29.0], [41.0, "inf"], [-91, 0], [0, 181]])
def test_plan_route_rejects_out_of_range_origin(client, origin):
    response = client.post(
        "/api/routes/plan",
        json={"waypoints": _waypoints(2), "mode": "current", "origin": origin},
    )
    assert response.status_code == 422


def test_plan_route_directory_not_configured_is_unavailable(client, monkeypatch):
    monkeypatch.setattr(settings, "location_directory_url", None)

    response = client.post("/api/routes/plan", json={"location_ids": ["L1"]})

    assert response.status_code == 503


def test_export_csv(client):
    response = client.post("/api/routes/export/csv", json={"waypoints": _waypoints(3), "round_trip": False})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"].startswith('attachment; filename="route-')
    lines = response.text.strip().splitlines()
    assert lines[0].startswith("sequence,location_id,name")
    assert len(lines) == 4


def test_plan_route_within_session_reuses_the_session(client):
    body = {"waypoints": _waypoints(4), "session_id": "driver-7"}

    first = client.post("/api/routes/plan", json=body)
    second = client.post("/api/routes/plan", json=body)

    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json()["order"] == second.json()["order"]
    assert list(routing_service._sessions) == ["driver-7"]
    assert routing_service._sessions["driver-7"].applied_sequence == 2
