from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from guardian_api.dependencies import get_current_user_id, get_proximity_service, get_tracking_service
from guardian_api.response import success_response
from guardian_api.schemas.geo import CoordinateIn
from guardian_api.schemas.session import TrackingStartRequest
from guardian_api.services.session_service import ProximityService, TrackingService

proximity_router = APIRouter(prefix="/v1/proximity", tags=["proximity"])
tracking_router = APIRouter(prefix="/v1/tracking", tags=["tracking"])


@proximity_router.post("/check")
async def check_proximity(
    request: Request,
    payload: CoordinateIn,
    user_id: str = Depends(get_current_user_id),
    service: ProximityService = Depends(get_proximity_service),
) -> dict:
    result, triggered = service.check(user_id, payload.to_point())
    for zone in triggered:
        request.app.state.prom_metrics.record_zone_alert(zone.level.value)
    return success_response(result.model_dump(), meta={"alert_count": len(triggered)})


@proximity_router.post("/reset")
async def reset_proximity(
    user_id: str = Depends(get_current_user_id),
    service: ProximityService = Depends(get_proximity_service),
) -> dict:
    service.reset(user_id)
    return success_response({"reset": True}, meta={})


@tracking_router.post("/start")
async def start_tracking(
    payload: TrackingStartRequest | None = None,
    user_id: str = Depends(get_current_user_id),
    service: TrackingService = Depends(get_tracking_service),
) -> dict:
    duration = payload.duration_seconds if payload else None
    return success_response(service.start(user_id, duration).model_dump(), meta={})


@tracking_router.post("/stop")
async def stop_tracking(
    user_id: str = Depends(get_current_user_id),
    service: TrackingService = Depends(get_tracking_service),
) -> dict:
    return success_response(service.stop(user_id).model_dump(), meta={})


@tracking_router.get("")
async def tracking_status(
    user_id: str = Depends(get_current_user_id),
    service: TrackingService = Depends(get_tracking_service),
) -> dict:
    return success_response(service.status(user_id).model_dump(), meta={})
