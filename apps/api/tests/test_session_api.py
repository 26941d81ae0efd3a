from __future__ import annotations

from fastapi.testclient import TestClient
from risk_engine.models import GeoPoint

from guardian_api.app import create_app
from guardian_api.dependencies import get_proximity_service, get_tracking_service
from guardian_api.repositories.zone_repository import ZoneRepository
from guardian_api.services.session_service import ProximityService, TrackingService

ZONE1_CENTER = {"lat": 34.052235, "lng": -118.243683}
FAR_AWAY = {"lat": 36.1699, "lng": -115.1398}


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def build_client():
    clock = FakeClock()
    proximity = ProximityService(ZoneRepository(), proximity_threshold_meters=500)
    tracking = TrackingService(proximity, default_duration_seconds=1800, now_fn=clock)
    app = create_app()
    app.dependency_overrides[get_proximity_service] = lambda: proximity
    app.dependency_overrides[get_tracking_service] = lambda: tracking
    return app, TestClient(app), clock


def test_session_endpoints_require_user_header() -> None:
    _, client, _ = build_client()

    response = client.post("/v1/proximity/check", json=ZONE1_CENTER)

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHENTICATED"


def test_proximity_alerts_each_zone_once() -> None:
    app, client, _ = build_client()
    headers = {"x-user-id": "walker-1"}

    first = client.post("/v1/proximity/check", json=ZONE1_CENTER, headers=headers)
    second = client.post("/v1/proximity/check", json=ZONE1_CENTER, headers=headers)
    metrics = client.get("/metrics").text

    assert [zone["id"] for zone in first.json()["data"]["alerts"]] == ["zone1"]
    assert first.json()["meta"] == {"alert_count": 1}
    assert second.json()["data"]["alerts"] == []
    assert second.json()["data"]["alerted_zone_ids"] == ["zone1"]
    assert 'guardian_zone_alerts_total{level="moderate"} 1.0' in metrics


def test_proximity_sessions_are_per_user() -> None:
    _, client, _ = build_client()

    client.post("/v1/proximity/check", json=ZONE1_CENTER, headers={"x-user-id": "walker-1"})
    other = client.post("/v1/proximity/check", json=ZONE1_CENTER, headers={"x-user-id": "walker-2"})

    assert [zone["id"] for zone in other.json()["data"]["alerts"]] == ["zone1"]


def test_proximity_far_from_zones_raises_nothing() -> None:
    _, client, _ = build_client()

    response = client.post("/v1/proximity/check", json=FAR_AWAY, headers={"x-user-id": "walker-1"})

    assert response.json()["data"] == {"alerts": [], "alerted_zone_ids": []}


def test_proximity_reset_allows_alerts_again() -> None:
    _, client, _ = build_client()
    headers = {"x-user-id": "walker-1"}

    client.post("/v1/proximity/check", json=ZONE1_CENTER, headers=headers)
    reset = client.post("/v1/proximity/reset", headers=headers)
    again = client.post("/v1/proximity/check", json=ZONE1_CENTER, headers=headers)

    assert reset.status_code == 200
    assert [zone["id"] for zone in again.json()["data"]["alerts"]] == ["zone1"]


def test_tracking_counts_down_with_clock_and_expires() -> None:
    _, client, clock = build_client()
    headers = {"x-user-id": "walker-1"}

    started = client.post("/v1/tracking/start", json={"duration_seconds": 60}, headers=headers)
    clock.now += 10.5
    running = client.get("/v1/tracking", headers=headers)
    clock.now += 0.5
    later = client.get("/v1/tracking", headers=headers)
    clock.now += 120
    expired = client.get("/v1/tracking", headers=headers)

    assert started.json()["data"] == {"active": True, "remaining_seconds": 60, "ended_reason": None}
    assert running.json()["data"]["remaining_seconds"] == 50
    assert later.json()["data"]["remaining_seconds"] == 49
    assert expired.json()["data"] == {"active": False, "remaining_seconds": 0, "ended_reason": "expired"}


def test_tracking_uses_default_duration_and_stops() -> None:
    _, client, clock = build_client()
    headers = {"x-user-id": "walker-1"}

    started = client.post("/v1/tracking/start", headers=headers)
    clock.now += 30
    stopped = client.post("/v1/tracking/stop", headers=headers)
    stopped_again = client.post("/v1/tracking/stop", headers=headers)

    assert started.json()["data"]["remaining_seconds"] == 1800
    assert stopped.json()["data"] == {"active": False, "remaining_seconds": 1770, "ended_reason": "stopped_by_user"}
    assert stopped_again.json()["data"]["ended_reason"] == "stopped_by_user"


def test_tracking_start_resets_proximity_alerts() -> None:
    _, client, _ = build_client()
    headers = {"x-user-id": "walker-1"}

    client.post("/v1/proximity/check", json=ZONE1_CENTER, headers=headers)
    client.post("/v1/tracking/start", json={"duration_seconds": 300}, headers=headers)
    again = client.post("/v1/proximity/check", json=ZONE1_CENTER, headers=headers)

    assert [zone["id"] for zone in again.json()["data"]["alerts"]] == ["zone1"]


def test_tracking_start_rejects_invalid_duration() -> None:
    _, client, _ = build_client()

    response = client.post("/v1/tracking/start", json={"duration_seconds": 0}, headers={"x-user-id": "walker-1"})

    assert response.status_code == 422


def test_idle_proximity_sessions_are_evicted() -> None:
    clock = FakeClock()
    proximity = ProximityService(ZoneRepository(), idle_ttl_seconds=60, now_fn=clock)
    zone1_center = GeoPoint(**ZONE1_CENTER)

    proximity.check("walker-1", zone1_center)
    proximity.check("walker-2", zone1_center)
    clock.now += 30
    proximity.check("walker-2", zone1_center)
    clock.now += 40
    _, triggered = proximity.check("walker-1", zone1_center)

    assert proximity.session_count == 2
    assert [zone.id for zone in triggered] == ["zone1"]
    clock.now += 70
    proximity.check("walker-3", GeoPoint(**FAR_AWAY))
    assert proximity.session_count == 1


def test_idle_tracking_sessions_are_evicted_after_countdown_ends() -> None:
    clock = FakeClock()
    proximity = ProximityService(ZoneRepository(), now_fn=clock)
    tracking = TrackingService(proximity, idle_ttl_seconds=60, now_fn=clock)

    tracking.start("walker-1", duration_seconds=300)
    tracking.stop("walker-2")
    clock.now += 100
    tracking.status("walker-3")

    assert tracking.session_count == 2
    clock.now += 250
    tracking.status("walker-3")
    assert tracking.session_count == 1
    assert tracking.status("walker-1").ended_reason is None
