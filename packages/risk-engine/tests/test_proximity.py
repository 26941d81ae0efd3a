import pytest

from risk_engine.errors import InvalidArgumentError
from risk_engine.models import GeoPoint, RiskLevel, RiskZone
from risk_engine.proximity import ProximitySession
from risk_engine.zones import ZoneRegistry

ZONE = RiskZone(
    id="zone3",
    location=GeoPoint(lat=17.7126, lng=83.2982),
    weight=50,
    radius_meters=400,
    level=RiskLevel.HIGH,
)
INSIDE = GeoPoint(lat=17.7130, lng=83.2985)
# ~780 m north: outside the radius, inside radius + 500 m threshold
APPROACHING = GeoPoint(lat=17.7196, lng=83.2982)
FAR = GeoPoint(lat=17.80, lng=83.40)


def test_check_proximity_triggers_within_threshold() -> None:
    session = ProximitySession(proximity_threshold_meters=500)
    assert session.check_proximity(APPROACHING, [ZONE]) == [ZONE]
    assert session.alerted_zone_ids == frozenset({"zone3"})


def test_check_proximity_ignores_far_positions() -> None:
    session = ProximitySession(proximity_threshold_meters=500)
    assert session.check_proximity(FAR, [ZONE]) == []
    assert session.alerted_zone_ids == frozenset()


def test_check_proximity_alerts_at_most_once_per_session() -> None:
    session = ProximitySession(proximity_threshold_meters=500)
    positions = [FAR, APPROACHING, INSIDE, FAR, INSIDE, APPROACHING, FAR, INSIDE]

    triggered = [zone.id for position in positions for zone in session.check_proximity(position, [ZONE])]

    assert triggered == ["zone3"]


def test_reset_session_allows_zone_to_trigger_again() -> None:
    session = ProximitySession(proximity_threshold_meters=500)
    assert session.check_proximity(INSIDE, [ZONE]) == [ZONE]
    assert session.check_proximity(INSIDE, [ZONE]) == []

    session.reset_session()

    assert session.check_proximity(INSIDE, [ZONE]) == [ZONE]


def test_replacing_snapshot_with_equal_zones_keeps_alert_state() -> None:
    session = ProximitySession()
    registry = ZoneRegistry([ZONE])
    assert session.check_proximity(INSIDE, registry.all_zones()) == [ZONE]

    reloaded = registry.replace(
        [RiskZone(id="zone3", location=GeoPoint(17.7126, 83.2982), weight=50, radius_meters=400, level=RiskLevel.HIGH)]
    )

    assert reloaded == registry
    assert session.check_proximity(INSIDE, reloaded.all_zones()) == []


def test_empty_zone_set_yields_no_alerts() -> None:
    session = ProximitySession()
    assert session.check_proximity(INSIDE, []) == []


def test_zero_threshold_uses_zone_radius_only() -> None:
    session = ProximitySession(proximity_threshold_meters=0)
    assert session.check_proximity(APPROACHING, [ZONE]) == []
    assert session.check_proximity(INSIDE, [ZONE]) == [ZONE]


def test_negative_threshold_raises() -> None:
    with pytest.raises(InvalidArgumentError):
        ProximitySession(proximity_threshold_meters=-1)
