from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from risk_engine.distance import haversine_distance_meters
from risk_engine.errors import InvalidArgumentError
from risk_engine.geofence import segment_intersects_circle
from risk_engine.models import RiskLevel, RiskZone, Route, RouteRiskSummary


@dataclass(frozen=True)
class RouteScore:
    index: int
    score: float


def evaluate_route(route: Route, zones: Sequence[RiskZone]) -> RouteRiskSummary:
    """Find every zone whose circle is crossed by at least one route segment."""
    if len(route) < 2:
        return RouteRiskSummary()

    crossed: dict[str, RiskZone] = {}
    for start, end in zip(route, route[1:]):
        for zone in zones:
            if zone.id in crossed:
                continue
            if segment_intersects_circle(start, end, zone.location, zone.radius_meters):
                crossed[zone.id] = zone

    intersecting = tuple(crossed.values())
    high_count = sum(1 for zone in intersecting if zone.level is RiskLevel.HIGH)
    return RouteRiskSummary(
        intersecting_zones=intersecting,
        high_count=high_count,
        moderate_count=len(intersecting) - high_count,
    )


def route_exposure_score(route: Route, zones: Sequence[RiskZone]) -> float:
    # Vertex sampling: cheap enough for routes with hundreds of points.
    score = 0.0
    for point in route:
        for zone in zones:
            if haversine_distance_meters(point, zone.location) < zone.radius_meters:
                score += zone.weight
    return score


def rank_routes(routes: Sequence[Route], zones: Sequence[RiskZone]) -> list[RouteScore]:
    scores = [RouteScore(index=index, score=route_exposure_score(route, zones)) for index, route in enumerate(routes)]
    return sorted(scores, key=lambda item: item.score)


def select_safer_route(routes: Sequence[Route], zones: Sequence[RiskZone]) -> int:
    if not routes:
        raise InvalidArgumentError("routes must not be empty")
    return rank_routes(routes, zones)[0].index
