from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from risk_engine.models import ActivityReport


class ReportCreateRequest(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    comment: str = Field(..., min_length=1, max_length=500)

    @field_validator("comment")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("comment must not be blank")
        return stripped


class ReportItem(BaseModel):
    id: str
    lat: float
    lng: float
    comment: str
    user_id: str
    timestamp: datetime

    @classmethod
    def from_report(cls, report: ActivityReport) -> ReportItem:
        return cls(
            id=report.id,
            lat=report.location.lat,
            lng=report.location.lng,
            comment=report.comment,
            user_id=report.user_id,
            timestamp=report.timestamp,
        )


class SosRequest(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class SosResult(BaseModel):
    maps_url: str
    notified_contacts: int
