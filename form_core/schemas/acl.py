"""Form ACL schemas."""
import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from form_core.core.permissions import PrincipalType, normalize_permissions


class AclEntryCreate(BaseModel):
    principal_type: PrincipalType = Field(..., alias="principalType")
    principal_id: str = Field(..., min_length=1, max_length=255, alias="principalId")
    permissions: list[str]

    class Config:
        populate_by_name = True

    @field_validator("principal_id")
    @classmethod
    def strip_principal_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("principal_id must not be blank")
        return v

    @field_validator("permissions")
    @classmethod
    def validate_permissions(cls, v: list[str]) -> list[str]:
        return normalize_permissions(v)


class AclEntryResponse(BaseModel):
    id: uuid.UUID
    form_id: uuid.UUID
    principal_type: str
    principal_id: str
    permissions: list[str]
    created_by: str
    created_at: datetime

    class Config:
        from_attributes = True


class AclEntryList(BaseModel):
    items: list[AclEntryResponse]
