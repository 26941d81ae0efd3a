from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class ContactCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=1, max_length=32)

    @field_validator("name", "phone")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped


class ContactItem(BaseModel):
    id: str
    name: str
    phone: str
