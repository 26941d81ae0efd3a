from __future__ import annotations

from devkit.config import load_settings
from devkit.redis import (
    create_cache_store,
    create_contact_store,
    create_rate_limit_store,
    create_redis_client,
    create_report_store,
)
from fastapi import Header
from risk_engine.models import GeoPoint

from guardian_api.cache import GeocodeCache
from guardian_api.circuit_breaker import CircuitBreaker
from guardian_api.clients.geocoding_client import GeocodingProviderClient
from guardian_api.clients.routing_client import RoutingProviderClient
from guardian_api.errors import ApiError
from guardian_api.rate_limit import SlidingWindowRateLimiter
from guardian_api.repositories.report_store import ReportFeed
from guardian_api.repositories.zone_repository import ZoneRepository
from guardian_api.services.contact_service import ContactService
from guardian_api.services.report_service import ReportService
from guardian_api.services.risk_service import RiskService
from guardian_api.services.session_service import ProximityService, TrackingService
from guardian_api.services.sos_service import LoggingNotificationSink, SosService

settings = load_settings("guardian-api")

redis_client = create_redis_client(settings.REDIS_URL)
_contact_store = create_contact_store(redis_client)
_report_store = create_report_store(redis_client)
_rate_limiter = SlidingWindowRateLimiter(
    create_rate_limit_store(redis_client, window_seconds=60),
    limit_per_minute=settings.RATE_LIMIT_PER_MINUTE,
    window_seconds=60,
)
_geocode_cache = GeocodeCache(store=create_cache_store(redis_client), ttl_seconds=settings.API_CACHE_TTL_SECONDS)

_zone_repository = ZoneRepository(zones_file=settings.ZONES_FILE)
_risk_service = RiskService(
    zone_repository=_zone_repository,
    routing_client=RoutingProviderClient(
        base_url=settings.ROUTING_PROVIDER_BASE_URL,
        profile=settings.ROUTING_PROFILE,
        timeout_seconds=settings.PROVIDER_TIMEOUT_SECONDS,
    ),
    geocoding_client=GeocodingProviderClient(
        base_url=settings.GEOCODING_PROVIDER_BASE_URL,
        user_agent=settings.GEOCODING_USER_AGENT,
        timeout_seconds=settings.PROVIDER_TIMEOUT_SECONDS,
    ),
    geocode_cache=_geocode_cache,
    routing_breaker=CircuitBreaker(name="routing", failure_threshold=3, recovery_timeout_seconds=30),
    geocoding_breaker=CircuitBreaker(name="geocoding", failure_threshold=3, recovery_timeout_seconds=30),
    fallback_origin=GeoPoint(lat=settings.FALLBACK_LAT, lng=settings.FALLBACK_LNG),
    provider_timeout_seconds=settings.PROVIDER_TIMEOUT_SECONDS,
)
_proximity_service = ProximityService(
    _zone_repository,
    proximity_threshold_meters=settings.PROXIMITY_THRESHOLD_METERS,
    idle_ttl_seconds=settings.SESSION_IDLE_TTL_SECONDS,
)
_tracking_service = TrackingService(
    _proximity_service,
    default_duration_seconds=settings.TRACKING_DURATION_SECONDS,
    idle_ttl_seconds=settings.SESSION_IDLE_TTL_SECONDS,
)
_contact_service = ContactService(_contact_store)
_report_service = ReportService(_report_store, ReportFeed())
_sos_service = SosService(_contact_store, LoggingNotificationSink())


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    if not x_user_id or not x_user_id.strip():
        raise ApiError.unauthenticated()
    return x_user_id.strip()


def get_rate_limiter() -> SlidingWindowRateLimiter:
    return _rate_limiter


def get_risk_service() -> RiskService:
    return _risk_service


def get_proximity_service() -> ProximityService:
    return _proximity_service


def get_tracking_service() -> TrackingService:
    return _tracking_service


def get_contact_service() -> ContactService:
    return _contact_service


def get_report_service() -> ReportService:
    return _report_service


def get_sos_service() -> SosService:
    return _sos_service
