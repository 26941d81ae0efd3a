from __future__ import annotations

from fastapi import APIRouter, Depends

from guardian_api.dependencies import get_contact_service, get_current_user_id
from guardian_api.response import success_response
from guardian_api.schemas.contacts import ContactCreateRequest
from guardian_api.services.contact_service import ContactService

router = APIRouter(prefix="/v1/contacts", tags=["contacts"])


@router.post("", status_code=201)
async def add_contact(
    payload: ContactCreateRequest,
    user_id: str = Depends(get_current_user_id),
    service: ContactService = Depends(get_contact_service),
) -> dict:
    contact = await service.add_contact(user_id, payload)
    return success_response(contact.model_dump(), meta={})


@router.get("")
async def list_contacts(
    user_id: str = Depends(get_current_user_id),
    service: ContactService = Depends(get_contact_service),
) -> dict:
    items = await service.list_contacts(user_id)
    return success_response([item.model_dump() for item in items], meta={"count": len(items)})


@router.delete("/{contact_id}")
async def delete_contact(
    contact_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ContactService = Depends(get_contact_service),
) -> dict:
    await service.delete_contact(user_id, contact_id)
    return success_response({"deleted": contact_id}, meta={})
