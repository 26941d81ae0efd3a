from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Protocol
from uuid import uuid4

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmergencyContact:
    id: str
    name: str
    phone: str


def _by_name(contact: EmergencyContact) -> tuple[str, str]:
    return contact.name.casefold(), contact.id


class ContactStore(ABC):
    """Emergency contacts, always scoped to one user id.

    Both implementations list contacts ordered by name.
    """

    @abstractmethod
    async def add_contact(self, user_id: str, name: str, phone: str) -> EmergencyContact:
        raise NotImplementedError

    @abstractmethod
    async def list_contacts(self, user_id: str) -> list[EmergencyContact]:
        raise NotImplementedError

    @abstractmethod
    async def delete_contact(self, user_id: str, contact_id: str) -> bool:
        raise NotImplementedError


class RedisLikeHashClient(Protocol):
    async def hset(self, name: str, key: str, value: str) -> int: ...

    async def hgetall(self, name: str) -> dict[str, str]: ...

    async def hdel(self, name: str, *keys: str) -> int: ...


class InMemoryContactStore(ContactStore):
    def __init__(self) -> None:
        self._contacts: dict[str, dict[str, EmergencyContact]] = {}

    async def add_contact(self, user_id: str, name: str, phone: str) -> EmergencyContact:
        contact = EmergencyContact(id=str(uuid4()), name=name, phone=phone)
        self._contacts.setdefault(user_id, {})[contact.id] = contact
        return contact

    async def list_contacts(self, user_id: str) -> list[EmergencyContact]:
        return sorted(self._contacts.get(user_id, {}).values(), key=_by_name)

    async def delete_contact(self, user_id: str, contact_id: str) -> bool:
        return self._contacts.get(user_id, {}).pop(contact_id, None) is not None


class RedisContactStore(ContactStore):
    def __init__(self, client: RedisLikeHashClient) -> None:
        self._client = client

    async def add_contact(self, user_id: str, name: str, phone: str) -> EmergencyContact:
        contact = EmergencyContact(id=str(uuid4()), name=name, phone=phone)
        await self._client.hset(self._key(user_id), contact.id, json.dumps(asdict(contact), ensure_ascii=False))
        return contact

    async def list_contacts(self, user_id: str) -> list[EmergencyContact]:
        raw = await self._client.hgetall(self._key(user_id))
        contacts = []
        for contact_id, payload in raw.items():
            try:
                data = json.loads(payload)
                contacts.append(EmergencyContact(id=contact_id, name=str(data["name"]), phone=str(data["phone"])))
            except (json.JSONDecodeError, KeyError, TypeError):
                logger.warning(
                    "contact_record_skipped",
                    extra={"component": "api", "user_id": user_id, "contact_id": contact_id},
                )
        return sorted(contacts, key=_by_name)

    async def delete_contact(self, user_id: str, contact_id: str) -> bool:
        return await self._client.hdel(self._key(user_id), contact_id) > 0

    def _key(self, user_id: str) -> str:
        return f"contacts:{user_id}"
