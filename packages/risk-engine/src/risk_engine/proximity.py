from __future__ import annotations

from collections.abc import Iterable

from risk_engine.distance import haversine_distance_meters
from risk_engine.errors import InvalidArgumentError
from risk_engine.models import GeoPoint, RiskZone

DEFAULT_PROXIMITY_THRESHOLD_METERS = 500.0


class ProximitySession:
    """Per-session danger zone alerting.

    Holds the ids of zones already alerted so each zone fires at most once
    until ``reset_session`` is called. Membership is keyed by zone id, so
    passing an equal but freshly loaded zone snapshot keeps the state.

    Not safe for concurrent use: feed position updates one at a time, in
    arrival order.
    """

    def __init__(self, proximity_threshold_meters: float = DEFAULT_PROXIMITY_THRESHOLD_METERS) -> None:
        if proximity_threshold_meters < 0:
            raise InvalidArgumentError("proximity_threshold_meters must be >= 0")
        self._threshold = float(proximity_threshold_meters)
        self._alerted: set[str] = set()

    @property
    def proximity_threshold_meters(self) -> float:
        return self._threshold

    @property
    def alerted_zone_ids(self) -> frozenset[str]:
        return frozenset(self._alerted)

    def check_proximity(self, position: GeoPoint, zones: Iterable[RiskZone]) -> list[RiskZone]:
        triggered: list[RiskZone] = []
        for zone in zones:
            if zone.id in self._alerted:
                continue
            distance = haversine_distance_meters(position, zone.location)
            if distance < zone.radius_meters + self._threshold:
                self._alerted.add(zone.id)
                triggered.append(zone)
        return triggered

    def reset_session(self) -> None:
        self._alerted.clear()
