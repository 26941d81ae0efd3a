from __future__ import annotations

from pydantic import BaseModel, Field

from guardian_api.schemas.geo import RiskZoneItem


class ProximityCheckResult(BaseModel):
    alerts: list[RiskZoneItem]
    alerted_zone_ids: list[str]


class TrackingStartRequest(BaseModel):
    duration_seconds: int | None = Field(default=None, ge=1, le=86400)


class TrackingStatusResult(BaseModel):
    active: bool
    remaining_seconds: int
    ended_reason: str | None = None
