"""Pydantic DTOs (Data Transfer Objects) for generic records."""

from typing import Any

from pydantic import BaseModel, Field


class RecordWrite(BaseModel):
    """Field values for a create or partial update.

    Provenance keys (createdAt, updatedBy, ...) are accepted but ignored.
    """

    fields: dict[str, Any] = Field(
        ..., examples=[{"Name": "Ada Lovelace", "Auth_Units_Total": 120}],
    )


class RecordCreatedResponse(BaseModel):
    id: str


class RecordResponse(BaseModel):
    """Schema returned to the client."""

    id: str
    category: str
    data: dict[str, Any]

    model_config = {"from_attributes": True}
