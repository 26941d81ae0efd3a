from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from risk_engine.models import GeoPoint

from guardian_api.repositories.report_store import ReportFeed, ReportStore
from guardian_api.schemas.reports import ReportCreateRequest, ReportItem

logger = logging.getLogger(__name__)


class ReportService:
    def __init__(self, store: ReportStore, feed: ReportFeed) -> None:
        self._store = store
        self._feed = feed

    async def add_report(self, user_id: str, payload: ReportCreateRequest) -> ReportItem:
        report = await self._store.add_report(
            location=GeoPoint(lat=payload.lat, lng=payload.lng),
            comment=payload.comment,
            user_id=user_id,
        )
        logger.info("report_created", extra={"component": "api", "report_id": report.id, "user_id": user_id})
        self._feed.publish(await self._store.list_reports())
        return ReportItem.from_report(report)

    async def list_reports(self) -> list[ReportItem]:
        reports = await self._store.list_reports()
        return [ReportItem.from_report(report) for report in sorted(reports, key=lambda item: item.timestamp)]

    async def stream(self) -> AsyncIterator[list[ReportItem]]:
        initial = await self._store.list_reports()
        async for reports in self._feed.subscribe(initial):
            yield [ReportItem.from_report(report) for report in sorted(reports, key=lambda item: item.timestamp)]
