from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from risk_engine.models import GeoPoint, RiskZone


class CoordinateIn(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    def to_point(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lng=self.lng)


class CoordinateOut(BaseModel):
    lat: float
    lng: float

    @classmethod
    def from_point(cls, point: GeoPoint) -> CoordinateOut:
        return cls(lat=point.lat, lng=point.lng)


class GeoDistanceResult(BaseModel):
    distance_meters: float


class RiskZoneItem(BaseModel):
    id: str
    lat: float
    lng: float
    weight: float
    radius_meters: float
    level: str

    @classmethod
    def from_zone(cls, zone: RiskZone) -> RiskZoneItem:
        return cls(
            id=zone.id,
            lat=zone.location.lat,
            lng=zone.location.lng,
            weight=zone.weight,
            radius_meters=zone.radius_meters,
            level=zone.level.value,
        )


class ZoneListResult(BaseModel):
    items: list[RiskZoneItem]


class ZoneReloadResult(BaseModel):
    zone_count: int
    changed: bool


class RouteEvaluateRequest(BaseModel):
    route: list[CoordinateIn]


class RouteRiskSummaryResult(BaseModel):
    intersecting_zones: list[RiskZoneItem]
    high_count: int
    moderate_count: int
    is_clear: bool


class SaferRouteRequest(BaseModel):
    routes: list[list[CoordinateIn]] = Field(..., min_length=1)


class RouteScoreItem(BaseModel):
    index: int
    score: float


class SaferRouteResult(BaseModel):
    selected_index: int
    scores: list[RouteScoreItem]


class RoutePlanRequest(BaseModel):
    """Either ``destination`` or ``destination_query`` must be given."""

    origin: CoordinateIn | None = None
    destination: CoordinateIn | None = None
    destination_query: str | None = Field(default=None, min_length=1)

    @model_validator(mode="after")
    def _require_destination(self) -> RoutePlanRequest:
        if self.destination is None and not (self.destination_query or "").strip():
            raise ValueError("destination or destination_query is required")
        return self


class PlannedRoute(BaseModel):
    index: int
    points: list[CoordinateOut]
    distance_meters: float
    duration_seconds: float
    score: float


class RoutePlanResult(BaseModel):
    origin: CoordinateOut
    destination: CoordinateOut
    selected_index: int
    fallback: bool
    routes: list[PlannedRoute]
    summary: RouteRiskSummaryResult


class GeocodeResultItem(BaseModel):
    lat: float
    lng: float
    display_name: str
