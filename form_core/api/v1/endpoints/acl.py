"""Form ACL API endpoints."""
import uuid
from typing import Any

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from form_core.core.auth import CallerIdentity, get_current_caller
from form_core.core.database import get_db
from form_core.schemas import AclEntryList, AclEntryResponse
from form_core.services import form_acl

router = APIRouter(prefix="/forms/{form_id}/acl", tags=["acl"])


@router.get("", response_model=AclEntryList)
async def list_acl_entries(
    form_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_caller),
):
    """List ACL entries for a form. Owner, admin or MANAGE_ACL holders only."""
    form = await form_acl.get_form_or_404(db, form_id)
    items = await form_acl.list_acl_entries(db, form, caller)
    return AclEntryList(items=[AclEntryResponse.model_validate(a) for a in items])


@router.post("", response_model=AclEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_acl_entry(
    form_id: uuid.UUID,
    payload: Any = Body(None),
    db: AsyncSession = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_caller),
):
    """Create an ACL entry for a form."""
    form = await form_acl.get_form_or_404(db, form_id)
    return await form_acl.create_acl_entry(db, form, caller, payload)


@router.delete("/{acl_id}")
async def delete_acl_entry(
    form_id: uuid.UUID,
    acl_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_caller),
):
    """Delete an ACL entry."""
    form = await form_acl.get_form_or_404(db, form_id)
    await form_acl.delete_acl_entry(db, form, acl_id, caller)
    return {"success": True}
