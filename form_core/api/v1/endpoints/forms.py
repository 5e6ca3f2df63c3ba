"""Forms API endpoints."""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from form_core.core.auth import CallerIdentity, get_current_caller, scope_mode_for
from form_core.core.database import get_db
from form_core.core.permissions import ScopeEntity, ScopeMode, ScopeVerb
from form_core.models import Form, FormField, FormVersion
from form_core.schemas import (
    FormCreate,
    FormDetailResponse,
    FormFieldResponse,
    FormListResponse,
    FormResponse,
    FormUpdate,
    FormVersionResponse,
    Pagination,
    PublishResponse,
)
from form_core.services import form_lifecycle

router = APIRouter(prefix="/forms", tags=["forms"])


def _detail_response(
    form: Form, version: Optional[FormVersion], fields: list[FormField]
) -> FormDetailResponse:
    return FormDetailResponse(
        form=FormResponse.model_validate(form),
        version=FormVersionResponse(
            id=version.id,
            version=version.version,
            status=version.status,
            list_config=version.list_config,
            fields=[FormFieldResponse.model_validate(f) for f in fields],
        )
        if version
        else None,
    )


@router.post("", response_model=FormResponse, status_code=status.HTTP_201_CREATED)
async def create_form(
    form_data: FormCreate,
    db: AsyncSession = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_caller),
):
    """Create a new form owned by the caller, with an initial draft."""
    return await form_lifecycle.create_form(db, caller, form_data)


@router.get("", response_model=FormListResponse)
async def list_forms(
    page: int = Query(1, ge=1),
    page_size: int = Query(25, ge=1, le=500, alias="pageSize"),
    search: Optional[str] = None,
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    db: AsyncSession = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_caller),
    mode: ScopeMode = Depends(scope_mode_for(ScopeVerb.READ, ScopeEntity.FORMS)),
):
    """List forms the caller owns or can access."""
    items, total = await form_lifecycle.list_forms(
        db,
        caller,
        mode,
        page=page,
        page_size=page_size,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return FormListResponse(
        items=[FormResponse.model_validate(f) for f in items],
        pagination=Pagination(
            page=page,
            page_size=page_size,
            total=total,
            total_pages=form_lifecycle.total_pages(total, page_size),
        ),
    )


@router.get("/{form_id}", response_model=FormDetailResponse)
async def get_form(
    form_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_caller),
):
    """Get a form with its current draft version and fields."""
    form, version, fields = await form_lifecycle.get_form_detail(db, form_id, caller)
    return _detail_response(form, version, fields)


@router.put("/{form_id}", response_model=FormDetailResponse)
async def update_form(
    form_id: uuid.UUID,
    form_data: FormUpdate,
    db: AsyncSession = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_caller),
):
    """Update form metadata and draft fields."""
    form, version, fields = await form_lifecycle.update_form(db, form_id, caller, form_data)
    return _detail_response(form, version, fields)


@router.delete("/{form_id}")
async def delete_form(
    form_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_caller),
):
    """Delete a form and all related data."""
    await form_lifecycle.delete_form(db, form_id, caller)
    return {"success": True}


@router.post("/{form_id}/publish", response_model=PublishResponse)
async def publish_form(
    form_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_caller),
):
    """Publish a form from its current draft. Owner only."""
    form, published = await form_lifecycle.publish_form(db, form_id, caller)
    return PublishResponse(
        **FormResponse.model_validate(form).model_dump(),
        published_version_id=published.id,
        message="Form published successfully",
    )


@router.post("/{form_id}/unpublish", response_model=PublishResponse)
async def unpublish_form(
    form_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_caller),
):
    """Unpublish a form. Owner only."""
    form = await form_lifecycle.unpublish_form(db, form_id, caller)
    return PublishResponse(
        **FormResponse.model_validate(form).model_dump(),
        message="Form unpublished successfully",
    )
