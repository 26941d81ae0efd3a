"""Common runtime devkit for service infrastructure concerns."""

from devkit.config import ServiceSettings, load_settings
from devkit.observability import configure_logging, configure_otel, configure_probe_access_log_filter
from devkit.redis import (
    AsyncRedisManager,
    create_cache_store,
    create_contact_store,
    create_rate_limit_store,
    create_redis_client,
    create_report_store,
)

__all__ = [
    "AsyncRedisManager",
    "ServiceSettings",
    "configure_logging",
    "configure_otel",
    "configure_probe_access_log_filter",
    "create_cache_store",
    "create_contact_store",
    "create_rate_limit_store",
    "create_redis_client",
    "create_report_store",
    "load_settings",
]
