from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from risk_engine.errors import InvalidArgumentError


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.lat) and math.isfinite(self.lng)):
            raise InvalidArgumentError("lat and lng must be finite numbers")


Route = Sequence[GeoPoint]


class RiskLevel(str, Enum):
    HIGH = "high"
    MODERATE = "moderate"


@dataclass(frozen=True)
class RiskZone:
    id: str
    location: GeoPoint
    weight: float
    radius_meters: float
    level: RiskLevel = RiskLevel.MODERATE

    def __post_init__(self) -> None:
        if not self.id:
            raise InvalidArgumentError("zone id must not be empty")
        if not math.isfinite(self.weight) or self.weight < 0 or self.weight > 100:
            raise InvalidArgumentError("weight must be between 0 and 100")
        if not math.isfinite(self.radius_meters) or self.radius_meters < 0:
            raise InvalidArgumentError("radius_meters must be >= 0")


@dataclass(frozen=True)
class RouteRiskSummary:
    intersecting_zones: tuple[RiskZone, ...] = ()
    high_count: int = 0
    moderate_count: int = 0

    @property
    def zone_ids(self) -> frozenset[str]:
        return frozenset(zone.id for zone in self.intersecting_zones)

    @property
    def is_clear(self) -> bool:
        return not self.intersecting_zones


@dataclass(frozen=True)
class ActivityReport:
    id: str
    location: GeoPoint
    comment: str
    user_id: str
    timestamp: datetime
