"""Form entry schemas."""
import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from .form import FormFieldResponse, Pagination


class EntryCreate(BaseModel):
    data: dict[str, Any]


class EntryUpdate(BaseModel):
    data: dict[str, Any]


class EntryResponse(BaseModel):
    id: uuid.UUID
    form_id: uuid.UUID
    data: dict[str, Any]
    created_by_user_id: str
    updated_by_user_id: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class EntryListResponse(BaseModel):
    items: list[EntryResponse]
    fields: list[FormFieldResponse]
    list_config: Optional[dict[str, Any]] = None
    pagination: Pagination
