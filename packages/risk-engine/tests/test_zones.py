import pytest

from risk_engine.errors import InvalidArgumentError
from risk_engine.models import GeoPoint, RiskLevel, RiskZone
from risk_engine.zones import DEFAULT_ZONES, ZoneRegistry, default_registry

DOWNTOWN = GeoPoint(lat=34.0549, lng=-118.2426)


def test_default_registry_exposes_seed_zones() -> None:
    registry = default_registry()
    assert len(registry) == len(DEFAULT_ZONES)
    assert registry.get("zone2").level is RiskLevel.HIGH
    assert registry.get("missing") is None


def test_zones_near_filters_by_edge_distance() -> None:
    registry = default_registry()
    near = registry.zones_near(DOWNTOWN, max_distance_meters=0)
    assert [zone.id for zone in near] == ["zone1"]

    wider = registry.zones_near(DOWNTOWN, max_distance_meters=50_000)
    assert len(wider) == len(DEFAULT_ZONES)


def test_zones_near_rejects_negative_distance() -> None:
    with pytest.raises(InvalidArgumentError):
        default_registry().zones_near(DOWNTOWN, max_distance_meters=-5)


def test_duplicate_zone_ids_are_rejected() -> None:
    zone = DEFAULT_ZONES[0]
    with pytest.raises(InvalidArgumentError):
        ZoneRegistry([zone, zone])


def test_replace_returns_new_snapshot() -> None:
    registry = default_registry()
    replaced = registry.replace(DEFAULT_ZONES[:2])

    assert len(registry) == len(DEFAULT_ZONES)
    assert len(replaced) == 2
    assert replaced != registry
    assert registry.replace(DEFAULT_ZONES) == registry


@pytest.mark.parametrize(
    "kwargs",
    [
        {"id": "", "weight": 10, "radius_meters": 100},
        {"id": "z", "weight": -1, "radius_meters": 100},
        {"id": "z", "weight": 101, "radius_meters": 100},
        {"id": "z", "weight": 10, "radius_meters": -1},
    ],
)
def test_risk_zone_invariants(kwargs) -> None:
    with pytest.raises(InvalidArgumentError):
        RiskZone(location=DOWNTOWN, **kwargs)
