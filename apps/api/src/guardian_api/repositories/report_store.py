from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from datetime import datetime, timezone
from typing import Protocol
from uuid import uuid4

from risk_engine.errors import InvalidArgumentError
from risk_engine.models import ActivityReport, GeoPoint
from risk_engine.records import report_from_record, report_to_record

logger = logging.getLogger(__name__)

REPORTS_KEY = "activity_reports"


class ReportStore(ABC):
    @abstractmethod
    async def add_report(self, location: GeoPoint, comment: str, user_id: str) -> ActivityReport:
        raise NotImplementedError

    @abstractmethod
    async def list_reports(self) -> list[ActivityReport]:
        raise NotImplementedError


class RedisLikeHashClient(Protocol):
    async def hset(self, name: str, key: str, value: str) -> int: ...

    async def hgetall(self, name: str) -> dict[str, str]: ...


def _new_report(location: GeoPoint, comment: str, user_id: str) -> ActivityReport:
    return ActivityReport(
        id=str(uuid4()),
        location=location,
        comment=comment,
        user_id=user_id,
        timestamp=datetime.now(timezone.utc),
    )


class InMemoryReportStore(ReportStore):
    def __init__(self) -> None:
        self._reports: dict[str, ActivityReport] = {}

    async def add_report(self, location: GeoPoint, comment: str, user_id: str) -> ActivityReport:
        report = _new_report(location, comment, user_id)
        self._reports[report.id] = report
        return report

    async def list_reports(self) -> list[ActivityReport]:
        return list(self._reports.values())


class RedisReportStore(ReportStore):
    def __init__(self, client: RedisLikeHashClient) -> None:
        self._client = client

    async def add_report(self, location: GeoPoint, comment: str, user_id: str) -> ActivityReport:
        report = _new_report(location, comment, user_id)
        await self._client.hset(REPORTS_KEY, report.id, json.dumps(report_to_record(report), ensure_ascii=False))
        return report

    async def list_reports(self) -> list[ActivityReport]:
        raw = await self._client.hgetall(REPORTS_KEY)
        reports = []
        for report_id, payload in raw.items():
            try:
                reports.append(report_from_record(json.loads(payload)))
            except (InvalidArgumentError, json.JSONDecodeError):
                logger.warning("report_record_skipped", extra={"component": "api", "report_id": report_id})
        return reports


class ReportFeed:
    """Fan-out of the full report set to live subscribers.

    Each subscriber gets its own queue; slow subscribers only ever see the
    latest snapshot since older ones are dropped.
    """

    def __init__(self) -> None:
        self._subscribers: set[asyncio.Queue[list[ActivityReport]]] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, reports: list[ActivityReport]) -> None:
        for queue in self._subscribers:
            while not queue.empty():
                queue.get_nowait()
            queue.put_nowait(list(reports))

    async def subscribe(self, initial: list[ActivityReport]) -> AsyncIterator[list[ActivityReport]]:
        queue: asyncio.Queue[list[ActivityReport]] = asyncio.Queue(maxsize=1)
        queue.put_nowait(list(initial))
        self._subscribers.add(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._subscribers.discard(queue)
