from __future__ import annotations

import asyncio
import contextlib
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from risk_engine.models import GeoPoint

from guardian_api.dependencies import get_current_user_id, get_report_service, get_sos_service
from guardian_api.response import success_response
from guardian_api.schemas.reports import ReportCreateRequest, SosRequest
from guardian_api.services.report_service import ReportService
from guardian_api.services.sos_service import SosService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/reports", tags=["reports"])
sos_router = APIRouter(prefix="/v1/sos", tags=["sos"])


@router.post("", status_code=201)
async def create_report(
    payload: ReportCreateRequest,
    user_id: str = Depends(get_current_user_id),
    service: ReportService = Depends(get_report_service),
) -> dict:
    report = await service.add_report(user_id, payload)
    return success_response(report.model_dump(mode="json"), meta={})


@router.get("")
async def list_reports(service: ReportService = Depends(get_report_service)) -> dict:
    items = await service.list_reports()
    return success_response([item.model_dump(mode="json") for item in items], meta={"count": len(items)})


@router.websocket("/stream")
async def stream_reports(websocket: WebSocket, service: ReportService = Depends(get_report_service)) -> None:
    await websocket.accept()

    async def _pump() -> None:
        try:
            async for items in service.stream():
                await websocket.send_json([item.model_dump(mode="json") for item in items])
        except WebSocketDisconnect:
            logger.info("report_stream_send_aborted", extra={"component": "api"})

    pump = asyncio.create_task(_pump())
    try:
        # clients never send; receiving only surfaces the disconnect
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("report_stream_closed", extra={"component": "api"})
    finally:
        pump.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await pump


@sos_router.post("")
async def trigger_sos(
    payload: SosRequest,
    user_id: str = Depends(get_current_user_id),
    service: SosService = Depends(get_sos_service),
) -> dict:
    result = await service.trigger(user_id, GeoPoint(lat=payload.lat, lng=payload.lng))
    return success_response(result.model_dump(), meta={})
