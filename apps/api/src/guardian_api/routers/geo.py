from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Depends, Query, Request, Response
from pydantic import BaseModel
from risk_engine.models import GeoPoint

from guardian_api.dependencies import get_proximity_service, get_rate_limiter, get_risk_service
from guardian_api.errors import ApiError
from guardian_api.rate_limit import SlidingWindowRateLimiter, resolve_client_key
from guardian_api.response import success_response
from guardian_api.schemas.geo import RouteEvaluateRequest, RoutePlanRequest, SaferRouteRequest
from guardian_api.services.risk_service import RiskService
from guardian_api.services.session_service import ProximityService

router = APIRouter(prefix="/v1/geo", tags=["geo"])


async def _call_with_guards(
    request: Request,
    response: Response,
    rate_limiter: SlidingWindowRateLimiter,
    action: Callable[[float], Awaitable[BaseModel]],
) -> dict:
    now = time.time()
    decision = await rate_limiter.check(resolve_client_key(request), now_seconds=now)
    if not decision.allowed:
        raise ApiError("RATE_LIMIT_EXCEEDED", "Too many requests", 429)
    response.headers["x-ratelimit-limit"] = str(decision.limit)
    response.headers["x-ratelimit-remaining"] = str(decision.remaining)
    data = await action(now)
    return success_response(data.model_dump(mode="json"), meta={})


@router.get("/distance")
async def distance(
    request: Request,
    response: Response,
    origin_lat: float = Query(..., ge=-90, le=90),
    origin_lng: float = Query(..., ge=-180, le=180),
    target_lat: float = Query(..., ge=-90, le=90),
    target_lng: float = Query(..., ge=-180, le=180),
    service: RiskService = Depends(get_risk_service),
    rate_limiter: SlidingWindowRateLimiter = Depends(get_rate_limiter),
) -> dict:
    origin = GeoPoint(lat=origin_lat, lng=origin_lng)
    target = GeoPoint(lat=target_lat, lng=target_lng)
    return await _call_with_guards(request, response, rate_limiter, lambda _: service.distance_meters(origin, target))


@router.get("/zones")
async def list_zones(
    request: Request,
    response: Response,
    lat: float | None = Query(default=None, ge=-90, le=90),
    lng: float | None = Query(default=None, ge=-180, le=180),
    max_distance_meters: float = Query(default=0.0, ge=0),
    service: RiskService = Depends(get_risk_service),
    rate_limiter: SlidingWindowRateLimiter = Depends(get_rate_limiter),
) -> dict:
    if (lat is None) != (lng is None):
        raise ApiError.validation("lat and lng must be given together")
    near = GeoPoint(lat=lat, lng=lng) if lat is not None and lng is not None else None
    return await _call_with_guards(
        request,
        response,
        rate_limiter,
        lambda _: service.list_zones(near=near, max_distance_meters=max_distance_meters),
    )


@router.post("/zones/reload")
async def reload_zones(
    request: Request,
    response: Response,
    service: RiskService = Depends(get_risk_service),
    proximity_service: ProximityService = Depends(get_proximity_service),
    rate_limiter: SlidingWindowRateLimiter = Depends(get_rate_limiter),
) -> dict:
    async def _reload(_: float):
        result = await service.reload_zones()
        if result.changed:
            proximity_service.reset_all()
        return result

    return await _call_with_guards(request, response, rate_limiter, _reload)


@router.post("/route/evaluate")
async def evaluate_route(
    request: Request,
    response: Response,
    payload: RouteEvaluateRequest,
    service: RiskService = Depends(get_risk_service),
    rate_limiter: SlidingWindowRateLimiter = Depends(get_rate_limiter),
) -> dict:
    route = [point.to_point() for point in payload.route]
    return await _call_with_guards(request, response, rate_limiter, lambda _: service.evaluate(route))


@router.post("/route/safer")
async def safer_route(
    request: Request,
    response: Response,
    payload: SaferRouteRequest,
    service: RiskService = Depends(get_risk_service),
    rate_limiter: SlidingWindowRateLimiter = Depends(get_rate_limiter),
) -> dict:
    routes = [[point.to_point() for point in route] for route in payload.routes]
    return await _call_with_guards(request, response, rate_limiter, lambda _: service.safer(routes))


@router.post("/route/plan")
async def plan_route(
    request: Request,
    response: Response,
    payload: RoutePlanRequest,
    service: RiskService = Depends(get_risk_service),
    rate_limiter: SlidingWindowRateLimiter = Depends(get_rate_limiter),
) -> dict:
    async def _plan(now: float):
        result = await service.plan_route(
            origin=payload.origin.to_point() if payload.origin else None,
            destination=payload.destination.to_point() if payload.destination else None,
            destination_query=payload.destination_query,
            now_seconds=now,
        )
        if result.fallback:
            request.app.state.prom_metrics.record_route_fallback()
        return result

    return await _call_with_guards(request, response, rate_limiter, _plan)


@router.get("/geocode")
async def geocode(
    request: Request,
    response: Response,
    q: str = Query(..., min_length=1, max_length=200),
    service: RiskService = Depends(get_risk_service),
    rate_limiter: SlidingWindowRateLimiter = Depends(get_rate_limiter),
) -> dict:
    if not q.strip():
        raise ApiError.validation("q must not be blank")
    return await _call_with_guards(request, response, rate_limiter, lambda now: service.geocode(q.strip(), now))
