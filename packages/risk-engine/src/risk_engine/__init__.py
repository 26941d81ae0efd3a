"""Geo-risk evaluation core package."""

from risk_engine.distance import EARTH_RADIUS_METERS, haversine_distance_meters
from risk_engine.errors import InvalidArgumentError
from risk_engine.geofence import is_point_inside_radius, segment_intersects_circle
from risk_engine.models import ActivityReport, GeoPoint, RiskLevel, RiskZone, Route, RouteRiskSummary
from risk_engine.proximity import DEFAULT_PROXIMITY_THRESHOLD_METERS, ProximitySession
from risk_engine.records import report_from_record, zone_from_record, zones_from_records
from risk_engine.route_risk import (
    RouteScore,
    evaluate_route,
    rank_routes,
    route_exposure_score,
    select_safer_route,
)
from risk_engine.tracking import (
    DEFAULT_TRACKING_SECONDS,
    TrackingEnd,
    TrackingEndReason,
    TrackingSession,
)
from risk_engine.zones import DEFAULT_ZONES, ZoneRegistry, default_registry

__all__ = [
    "ActivityReport",
    "DEFAULT_PROXIMITY_THRESHOLD_METERS",
    "DEFAULT_TRACKING_SECONDS",
    "DEFAULT_ZONES",
    "EARTH_RADIUS_METERS",
    "GeoPoint",
    "InvalidArgumentError",
    "ProximitySession",
    "RiskLevel",
    "RiskZone",
    "Route",
    "RouteRiskSummary",
    "RouteScore",
    "TrackingEnd",
    "TrackingEndReason",
    "TrackingSession",
    "ZoneRegistry",
    "default_registry",
    "evaluate_route",
    "haversine_distance_meters",
    "is_point_inside_radius",
    "rank_routes",
    "report_from_record",
    "route_exposure_score",
    "segment_intersects_circle",
    "select_safer_route",
    "zone_from_record",
    "zones_from_records",
]
