from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from risk_engine.models import GeoPoint

from guardian_api.repositories.contact_store import ContactStore, EmergencyContact
from guardian_api.schemas.reports import SosResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SosAlert:
    user_id: str
    location: GeoPoint
    maps_url: str
    contacts: tuple[EmergencyContact, ...]


class NotificationSink(Protocol):
    async def send(self, alert: SosAlert) -> None: ...


class LoggingNotificationSink:
    """Records SOS alerts in the log. No message is delivered to anyone."""

    async def send(self, alert: SosAlert) -> None:
        logger.critical(
            "sos_triggered",
            extra={
                "component": "api",
                "user_id": alert.user_id,
                "maps_url": alert.maps_url,
                "contact_count": len(alert.contacts),
            },
        )


def maps_url(location: GeoPoint) -> str:
    return f"https://www.google.com/maps?q={location.lat},{location.lng}"


class SosService:
    def __init__(self, contact_store: ContactStore, sink: NotificationSink) -> None:
        self._contacts = contact_store
        self._sink = sink

    async def trigger(self, user_id: str, location: GeoPoint) -> SosResult:
        contacts = tuple(await self._contacts.list_contacts(user_id))
        alert = SosAlert(user_id=user_id, location=location, maps_url=maps_url(location), contacts=contacts)
        await self._sink.send(alert)
        return SosResult(maps_url=alert.maps_url, notified_contacts=len(contacts))
