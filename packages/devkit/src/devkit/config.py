from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class ServiceSettings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    SERVICE_NAME: str = "service"
    LOG_LEVEL: str = "INFO"
    REDIS_URL: str | None = None
    ROUTING_PROVIDER_BASE_URL: str = "https://router.project-osrm.org"
    ROUTING_PROFILE: str = "driving"
    GEOCODING_PROVIDER_BASE_URL: str = "https://nominatim.openstreetmap.org"
    GEOCODING_USER_AGENT: str = "guardian-route/0.1.0"
    PROVIDER_TIMEOUT_SECONDS: float = 5.0
    PROXIMITY_THRESHOLD_METERS: float = 500.0
    TRACKING_DURATION_SECONDS: int = 1800
    SESSION_IDLE_TTL_SECONDS: float = 21600.0
    ZONES_FILE: str | None = None
    FALLBACK_LAT: float = 34.0549
    FALLBACK_LNG: float = -118.2426
    API_CACHE_TTL_SECONDS: int = 300
    RATE_LIMIT_PER_MINUTE: int = 100


def load_settings(service_name: str) -> ServiceSettings:
    return ServiceSettings(SERVICE_NAME=service_name)
