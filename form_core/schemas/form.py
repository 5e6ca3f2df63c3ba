"""Form schemas."""
import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from form_core.core.permissions import Visibility


class FormFieldInput(BaseModel):
    id: Optional[uuid.UUID] = None
    key: str = Field(..., min_length=1, max_length=255)
    label: str = Field(..., min_length=1, max_length=255)
    type: str = Field(..., min_length=1, max_length=50)
    hidden: bool = False
    required: bool = False
    config: Optional[dict[str, Any]] = None
    default_value: Optional[Any] = None


class FormCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    visibility: Visibility = Visibility.PRIVATE


class FormUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    visibility: Optional[Visibility] = None
    # Replaces the draft's fields when given
    fields: Optional[list[FormFieldInput]] = None
    list_config: Optional[dict[str, Any]] = None


class FormResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str]
    owner_user_id: str
    is_published: bool
    visibility: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class FormFieldResponse(BaseModel):
    id: uuid.UUID
    key: str
    label: str
    type: str
    order: int
    hidden: bool
    required: bool
    config: Optional[dict[str, Any]]
    default_value: Optional[Any]

    class Config:
        from_attributes = True


class FormVersionResponse(BaseModel):
    id: uuid.UUID
    version: int
    status: str
    list_config: Optional[dict[str, Any]]
    fields: list[FormFieldResponse] = []


class FormDetailResponse(BaseModel):
    form: FormResponse
    version: Optional[FormVersionResponse] = None


class PublishResponse(FormResponse):
    published_version_id: Optional[uuid.UUID] = None
    message: str


class Pagination(BaseModel):
    page: int
    page_size: int
    total: int
    total_pages: int


class FormListResponse(BaseModel):
    items: list[FormResponse]
    pagination: Pagination
