from __future__ import annotations

from collections.abc import Iterable, Iterator

from risk_engine.distance import haversine_distance_meters
from risk_engine.errors import InvalidArgumentError
from risk_engine.models import GeoPoint, RiskLevel, RiskZone

DEFAULT_ZONES: tuple[RiskZone, ...] = (
    RiskZone(
        id="zone1",
        location=GeoPoint(lat=34.052235, lng=-118.243683),
        weight=50,
        radius_meters=1000,
        level=RiskLevel.MODERATE,
    ),
    RiskZone(
        id="zone2",
        location=GeoPoint(lat=34.02235, lng=-118.285118),
        weight=80,
        radius_meters=1500,
        level=RiskLevel.HIGH,
    ),
    RiskZone(
        id="zone3",
        location=GeoPoint(lat=33.941589, lng=-118.408531),
        weight=30,
        radius_meters=1200,
        level=RiskLevel.MODERATE,
    ),
    RiskZone(
        id="zone4",
        location=GeoPoint(lat=34.0736, lng=-118.399),
        weight=65,
        radius_meters=800,
        level=RiskLevel.HIGH,
    ),
)


class ZoneRegistry:
    """Read-only snapshot of the active risk zones.

    Lookups are linear scans, which is fine for a few dozen zones. Updates go
    through ``replace`` and produce a new registry, so a snapshot handed to an
    evaluation never changes underneath it.
    """

    def __init__(self, zones: Iterable[RiskZone] = ()) -> None:
        items: dict[str, RiskZone] = {}
        for zone in zones:
            if zone.id in items:
                raise InvalidArgumentError(f"duplicate zone id: {zone.id}")
            items[zone.id] = zone
        self._zones = items

    def all_zones(self) -> tuple[RiskZone, ...]:
        return tuple(self._zones.values())

    def get(self, zone_id: str) -> RiskZone | None:
        return self._zones.get(zone_id)

    def zones_near(self, point: GeoPoint, max_distance_meters: float) -> list[RiskZone]:
        if max_distance_meters < 0:
            raise InvalidArgumentError("max_distance_meters must be >= 0")
        return [
            zone
            for zone in self._zones.values()
            if haversine_distance_meters(point, zone.location) <= zone.radius_meters + max_distance_meters
        ]

    def replace(self, zones: Iterable[RiskZone]) -> ZoneRegistry:
        return ZoneRegistry(zones)

    def __len__(self) -> int:
        return len(self._zones)

    def __iter__(self) -> Iterator[RiskZone]:
        return iter(self._zones.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ZoneRegistry):
            return NotImplemented
        return self._zones == other._zones

    def __repr__(self) -> str:
        return f"ZoneRegistry(zones={len(self._zones)})"


def default_registry() -> ZoneRegistry:
    return ZoneRegistry(DEFAULT_ZONES)
