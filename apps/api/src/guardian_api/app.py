from __future__ import annotations

import time

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from risk_engine.errors import InvalidArgumentError

from guardian_api.dependencies import get_risk_service, settings
from guardian_api.errors import ApiError
from guardian_api.middleware import ObservabilityMiddleware
from guardian_api.observability import (
    CompositeApiMetricsCollector,
    InMemoryApiMetricsCollector,
    PrometheusApiMetricsCollector,
)
from guardian_api.response import error_response, success_response
from guardian_api.routers.contacts import router as contacts_router
from guardian_api.routers.geo import router as geo_router
from guardian_api.routers.reports import router as reports_router
from guardian_api.routers.reports import sos_router
from guardian_api.routers.session import proximity_router, tracking_router
from guardian_api.services.risk_service import RiskService
from guardian_api.telemetry import configure_logging, configure_otel, configure_probe_access_log_filter


def create_app() -> FastAPI:
    app = FastAPI(title="Guardian Route API", version="0.1.0")
    configure_logging(settings.LOG_LEVEL)
    configure_otel(service_name=settings.SERVICE_NAME)
    configure_probe_access_log_filter()
    app.state.api_metrics = InMemoryApiMetricsCollector()
    app.state.prom_metrics = PrometheusApiMetricsCollector()
    app.state.composite_metrics = CompositeApiMetricsCollector(
        [app.state.api_metrics, app.state.prom_metrics]
    )
    app.add_middleware(ObservabilityMiddleware, collector=app.state.composite_metrics)
    app.include_router(geo_router)
    app.include_router(proximity_router)
    app.include_router(tracking_router)
    app.include_router(contacts_router)
    app.include_router(reports_router)
    app.include_router(sos_router)

    @app.get("/healthz")
    async def healthz() -> dict:
        return success_response({"status": "ok"}, meta={})

    @app.get("/readyz")
    async def readyz(service: RiskService = Depends(get_risk_service)) -> dict:
        # provider circuits are reported only; readiness does not depend on them
        return success_response(
            {"status": "ready", "circuits": service.circuit_states(time.time())},
            meta={},
        )

    @app.get("/metrics")
    async def metrics() -> Response:
        payload = app.state.prom_metrics.render()
        return Response(content=payload, media_type="text/plain; version=0.0.4")

    @app.exception_handler(ApiError)
    async def handle_api_error(_: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=error_response(exc.code, exc.message))

    @app.exception_handler(InvalidArgumentError)
    async def handle_invalid_argument(_: Request, exc: InvalidArgumentError) -> JSONResponse:
        return JSONResponse(status_code=422, content=error_response("VALIDATION_ERROR", str(exc)))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        message = "; ".join(err["msg"] for err in exc.errors())
        return JSONResponse(
            status_code=422,
            content=error_response("VALIDATION_ERROR", message),
        )

    return app


app = create_app()
