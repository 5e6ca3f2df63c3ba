"""Form entries API endpoints."""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from form_core.core.auth import CallerIdentity, get_current_caller, scope_mode_for
from form_core.core.database import get_db
from form_core.core.permissions import ScopeEntity, ScopeMode, ScopeVerb
from form_core.schemas import (
    EntryCreate,
    EntryListResponse,
    EntryResponse,
    EntryUpdate,
    FormFieldResponse,
    Pagination,
)
from form_core.services import entries as entry_service
from form_core.services.form_acl import get_form_or_404
from form_core.services.form_lifecycle import total_pages

router = APIRouter(prefix="/forms/{form_id}/entries", tags=["entries"])


@router.get("", response_model=EntryListResponse)
async def list_entries(
    form_id: uuid.UUID,
    page: int = Query(1, ge=1),
    page_size: int = Query(25, ge=1, le=500, alias="pageSize"),
    search: Optional[str] = None,
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    db: AsyncSession = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_caller),
    mode: ScopeMode = Depends(scope_mode_for(ScopeVerb.READ, ScopeEntity.ENTRIES)),
):
    """List entries for a form with pagination, sorting and search."""
    form = await get_form_or_404(db, form_id)
    items, total, published, fields = await entry_service.list_entries(
        db,
        form,
        caller,
        mode,
        page=page,
        page_size=page_size,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return EntryListResponse(
        items=[EntryResponse.model_validate(e) for e in items],
        fields=[FormFieldResponse.model_validate(f) for f in fields],
        list_config=published.list_config if published else None,
        pagination=Pagination(
            page=page,
            page_size=page_size,
            total=total,
            total_pages=total_pages(total, page_size),
        ),
    )


@router.post("", response_model=EntryResponse, status_code=status.HTTP_201_CREATED)
async def create_entry(
    form_id: uuid.UUID,
    entry_data: EntryCreate,
    db: AsyncSession = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_caller),
    mode: ScopeMode = Depends(scope_mode_for(ScopeVerb.WRITE, ScopeEntity.ENTRIES)),
):
    """Create a new entry."""
    form = await get_form_or_404(db, form_id)
    return await entry_service.create_entry(db, form, caller, mode, entry_data.data)


@router.get("/{entry_id}", response_model=EntryResponse)
async def get_entry(
    form_id: uuid.UUID,
    entry_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_caller),
    mode: ScopeMode = Depends(scope_mode_for(ScopeVerb.READ, ScopeEntity.ENTRIES)),
):
    form = await get_form_or_404(db, form_id)
    return await entry_service.get_entry(db, form, entry_id, caller, mode)


@router.put("/{entry_id}", response_model=EntryResponse)
async def update_entry(
    form_id: uuid.UUID,
    entry_id: uuid.UUID,
    entry_data: EntryUpdate,
    db: AsyncSession = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_caller),
    mode: ScopeMode = Depends(scope_mode_for(ScopeVerb.WRITE, ScopeEntity.ENTRIES)),
):
    form = await get_form_or_404(db, form_id)
    return await entry_service.update_entry(db, form, entry_id, caller, mode, entry_data.data)


@router.delete("/{entry_id}")
async def delete_entry(
    form_id: uuid.UUID,
    entry_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_caller),
    mode: ScopeMode = Depends(scope_mode_for(ScopeVerb.DELETE, ScopeEntity.ENTRIES)),
):
    form = await get_form_or_404(db, form_id)
    await entry_service.delete_entry(db, form, entry_id, caller, mode)
    return {"success": True}
