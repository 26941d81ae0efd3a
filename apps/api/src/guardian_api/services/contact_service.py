from __future__ import annotations

from guardian_api.errors import ApiError
from guardian_api.repositories.contact_store import ContactStore
from guardian_api.schemas.contacts import ContactCreateRequest, ContactItem


class ContactService:
    def __init__(self, store: ContactStore) -> None:
        self._store = store

    async def add_contact(self, user_id: str, payload: ContactCreateRequest) -> ContactItem:
        contact = await self._store.add_contact(user_id, payload.name, payload.phone)
        return ContactItem(id=contact.id, name=contact.name, phone=contact.phone)

    async def list_contacts(self, user_id: str) -> list[ContactItem]:
        contacts = await self._store.list_contacts(user_id)
        return [ContactItem(id=item.id, name=item.name, phone=item.phone) for item in contacts]

    async def delete_contact(self, user_id: str, contact_id: str) -> None:
        if not await self._store.delete_contact(user_id, contact_id):
            raise ApiError.not_found("Contact not found")
