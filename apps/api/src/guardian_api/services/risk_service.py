from __future__ import annotations

import asyncio
import logging

from risk_engine.distance import haversine_distance_meters
from risk_engine.models import GeoPoint, Route, RouteRiskSummary
from risk_engine.route_risk import evaluate_route, rank_routes, select_safer_route

from guardian_api.cache import GeocodeCache
from guardian_api.circuit_breaker import CircuitBreaker, CircuitOpenError
from guardian_api.clients.geocoding_client import GeocodingProviderClient
from guardian_api.clients.routing_client import RouteCandidate, RoutingProviderClient
from guardian_api.errors import ApiError
from guardian_api.repositories.zone_repository import ZoneRepository
from guardian_api.schemas.geo import (
    CoordinateOut,
    GeoDistanceResult,
    GeocodeResultItem,
    PlannedRoute,
    RiskZoneItem,
    RoutePlanResult,
    RouteRiskSummaryResult,
    RouteScoreItem,
    SaferRouteResult,
    ZoneListResult,
    ZoneReloadResult,
)

logger = logging.getLogger(__name__)


def _summary_result(summary: RouteRiskSummary) -> RouteRiskSummaryResult:
    return RouteRiskSummaryResult(
        intersecting_zones=[RiskZoneItem.from_zone(zone) for zone in summary.intersecting_zones],
        high_count=summary.high_count,
        moderate_count=summary.moderate_count,
        is_clear=summary.is_clear,
    )


class RiskService:
    def __init__(
        self,
        zone_repository: ZoneRepository,
        routing_client: RoutingProviderClient,
        geocoding_client: GeocodingProviderClient,
        geocode_cache: GeocodeCache,
        routing_breaker: CircuitBreaker,
        geocoding_breaker: CircuitBreaker,
        fallback_origin: GeoPoint,
        provider_timeout_seconds: float = 5.0,
    ) -> None:
        self._zones = zone_repository
        self._routing_client = routing_client
        self._geocoding_client = geocoding_client
        self._geocode_cache = geocode_cache
        self._routing_breaker = routing_breaker
        self._geocoding_breaker = geocoding_breaker
        self._fallback_origin = fallback_origin
        self._timeout_seconds = provider_timeout_seconds

    def circuit_states(self, now_seconds: float) -> dict[str, str]:
        breakers = (self._routing_breaker, self._geocoding_breaker)
        return {breaker.name: breaker.state(now_seconds) for breaker in breakers}

    async def distance_meters(self, origin: GeoPoint, target: GeoPoint) -> GeoDistanceResult:
        return GeoDistanceResult(distance_meters=round(haversine_distance_meters(origin, target), 2))

    async def list_zones(self, near: GeoPoint | None = None, max_distance_meters: float = 0.0) -> ZoneListResult:
        registry = self._zones.registry
        zones = registry.zones_near(near, max_distance_meters) if near is not None else registry.all_zones()
        return ZoneListResult(items=[RiskZoneItem.from_zone(zone) for zone in zones])

    async def reload_zones(self) -> ZoneReloadResult:
        changed = self._zones.reload()
        return ZoneReloadResult(zone_count=len(self._zones.registry), changed=changed)

    async def evaluate(self, route: Route) -> RouteRiskSummaryResult:
        return _summary_result(evaluate_route(route, self._zones.registry.all_zones()))

    async def safer(self, routes: list[Route]) -> SaferRouteResult:
        zones = self._zones.registry.all_zones()
        selected_index = select_safer_route(routes, zones)
        ranked = rank_routes(routes, zones)
        return SaferRouteResult(
            selected_index=selected_index,
            scores=[RouteScoreItem(index=item.index, score=item.score) for item in ranked],
        )

    async def geocode(self, query: str, now_seconds: float) -> GeocodeResultItem:
        cached = await self._geocode_cache.get(query)
        if cached is not None:
            if not cached.get("found"):
                raise ApiError.not_found(f"No location found for '{query}'")
            return GeocodeResultItem(**cached["result"])

        try:
            result = await asyncio.wait_for(
                self._geocoding_breaker.call(lambda: self._geocoding_client.geocode(query), now_seconds=now_seconds),
                timeout=self._timeout_seconds,
            )
        except CircuitOpenError as exc:
            raise ApiError("UPSTREAM_UNAVAILABLE", "Please retry later", 503) from exc
        except TimeoutError as exc:
            raise ApiError("UPSTREAM_TIMEOUT", "Upstream timeout", 504) from exc

        if result is None:
            await self._geocode_cache.set(query, {"found": False})
            raise ApiError.not_found(f"No location found for '{query}'")
        item = GeocodeResultItem(lat=result.location.lat, lng=result.location.lng, display_name=result.display_name)
        await self._geocode_cache.set(query, {"found": True, "result": item.model_dump()})
        return item

    async def plan_route(
        self,
        origin: GeoPoint | None,
        destination: GeoPoint | None,
        destination_query: str | None,
        now_seconds: float,
    ) -> RoutePlanResult:
        origin = origin or self._fallback_origin
        if destination is None:
            geocoded = await self.geocode(destination_query or "", now_seconds)
            destination = GeoPoint(lat=geocoded.lat, lng=geocoded.lng)

        candidates = await self._fetch_candidates(origin, destination, now_seconds)
        fallback = not candidates
        if fallback:
            candidates = [
                RouteCandidate(
                    points=(origin, destination),
                    distance_meters=haversine_distance_meters(origin, destination),
                    duration_seconds=0.0,
                )
            ]

        zones = self._zones.registry.all_zones()
        routes = [candidate.points for candidate in candidates]
        scores = {item.index: item.score for item in rank_routes(routes, zones)}
        selected_index = select_safer_route(routes, zones)
        summary = evaluate_route(candidates[selected_index].points, zones)
        logger.info(
            "route_planned",
            extra={
                "component": "api",
                "candidate_count": len(candidates),
                "selected_index": selected_index,
                "fallback": fallback,
                "high_count": summary.high_count,
            },
        )
        return RoutePlanResult(
            origin=CoordinateOut.from_point(origin),
            destination=CoordinateOut.from_point(destination),
            selected_index=selected_index,
            fallback=fallback,
            routes=[
                PlannedRoute(
                    index=index,
                    points=[CoordinateOut.from_point(point) for point in candidate.points],
                    distance_meters=round(candidate.distance_meters, 2),
                    duration_seconds=candidate.duration_seconds,
                    score=scores[index],
                )
                for index, candidate in enumerate(candidates)
            ],
            summary=_summary_result(summary),
        )

    async def _fetch_candidates(
        self,
        origin: GeoPoint,
        destination: GeoPoint,
        now_seconds: float,
    ) -> list[RouteCandidate]:
        try:
            candidates = await asyncio.wait_for(
                self._routing_breaker.call(
                    lambda: self._routing_client.fetch_routes(origin, destination),
                    now_seconds=now_seconds,
                ),
                timeout=self._timeout_seconds,
            )
        except (ApiError, CircuitOpenError, TimeoutError) as exc:
            logger.warning(
                "routing_fallback",
                extra={"component": "api", "reason": getattr(exc, "code", type(exc).__name__)},
            )
            return []
        if not candidates:
            logger.warning("routing_fallback", extra={"component": "api", "reason": "NO_ROUTE"})
        return candidates
