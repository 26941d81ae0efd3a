"""Conversion of loosely-typed store records into strict core values.

Document stores hand back plain dicts with optional or oddly-named fields.
Everything here fails fast with ``InvalidArgumentError`` so malformed records
never reach the evaluators.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from risk_engine.errors import InvalidArgumentError
from risk_engine.models import ActivityReport, GeoPoint, RiskLevel, RiskZone

HIGH_LEVEL_MIN_WEIGHT = 60.0


def zone_from_record(record: Mapping[str, Any]) -> RiskZone:
    zone_id = _require_str(record, "id")
    location = _location_from(record)
    weight = _require_number(record, "weight")
    radius = _first_number(record, ("radius_meters", "radius"))
    level_raw = record.get("level")
    if level_raw is None:
        level = RiskLevel.HIGH if weight >= HIGH_LEVEL_MIN_WEIGHT else RiskLevel.MODERATE
    else:
        try:
            level = RiskLevel(str(level_raw).lower())
        except ValueError as exc:
            raise InvalidArgumentError(f"level must be one of high, moderate: {level_raw!r}") from exc
    return RiskZone(id=zone_id, location=location, weight=weight, radius_meters=radius, level=level)


def zones_from_records(records: Iterable[Mapping[str, Any]]) -> list[RiskZone]:
    return [zone_from_record(record) for record in records]


def report_from_record(record: Mapping[str, Any]) -> ActivityReport:
    report_id = _require_str(record, "id")
    comment = _require_str(record, "comment")
    user_id = _first_str(record, ("user_id", "userId"))
    raw_timestamp = record.get("timestamp")
    if isinstance(raw_timestamp, datetime):
        timestamp = raw_timestamp
    elif isinstance(raw_timestamp, str):
        try:
            timestamp = datetime.fromisoformat(raw_timestamp)
        except ValueError as exc:
            raise InvalidArgumentError(f"timestamp is not ISO-8601: {raw_timestamp!r}") from exc
    elif isinstance(raw_timestamp, (int, float)) and not isinstance(raw_timestamp, bool):
        # epoch milliseconds, as written by browser clients
        timestamp = datetime.fromtimestamp(raw_timestamp / 1000.0, tz=timezone.utc)
    else:
        raise InvalidArgumentError("timestamp is required")
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return ActivityReport(
        id=report_id,
        location=_location_from(record),
        comment=comment,
        user_id=user_id,
        timestamp=timestamp,
    )


def report_to_record(report: ActivityReport) -> dict[str, Any]:
    return {
        "id": report.id,
        "lat": report.location.lat,
        "lng": report.location.lng,
        "comment": report.comment,
        "user_id": report.user_id,
        "timestamp": report.timestamp.isoformat(),
    }


def _location_from(record: Mapping[str, Any]) -> GeoPoint:
    nested = record.get("location")
    source: Mapping[str, Any] = nested if isinstance(nested, Mapping) else record
    return GeoPoint(lat=_require_number(source, "lat"), lng=_require_number(source, "lng"))


def _require_str(record: Mapping[str, Any], field: str) -> str:
    value = record.get(field)
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"{field} must be a non-empty string")
    return value


def _first_str(record: Mapping[str, Any], fields: tuple[str, ...]) -> str:
    for field in fields:
        if field in record:
            return _require_str(record, field)
    raise InvalidArgumentError(f"{fields[0]} is required")


def _require_number(record: Mapping[str, Any], field: str) -> float:
    value = record.get(field)
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise InvalidArgumentError(f"{field} must be a number")
    try:
        return float(value)
    except ValueError as exc:
        raise InvalidArgumentError(f"{field} must be a number") from exc


def _first_number(record: Mapping[str, Any], fields: tuple[str, ...]) -> float:
    for field in fields:
        if field in record:
            return _require_number(record, field)
    raise InvalidArgumentError(f"{fields[0]} is required")
