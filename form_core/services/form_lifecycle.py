"""
Form lifecycle service.

States:
    Draft -> Published -> Unpublished

A form starts as a draft (version 1, status ``draft``). Publishing copies the
latest draft into a new ``published`` version and archives the previous
published version in the same transaction. Unpublishing archives the
published version and hides the form from everyone but its owner and admins;
ACL entries are left in place and apply again once the form is republished.
"""
import logging
import math
import uuid
from typing import Optional

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from form_core.core import acl as acl_model
from form_core.core.auth import CallerIdentity
from form_core.core.exceptions import (
    EmptyFormError,
    ForbiddenError,
    NoDraftToPublishError,
    NotFoundError,
    NotPublishedError,
)
from form_core.core.permissions import ScopeMode, VersionStatus
from form_core.models import Form, FormAcl, FormEntry, FormField, FormVersion
from form_core.models.base import LIKE_ESCAPE, contains_pattern
from form_core.schemas import FormCreate, FormUpdate
from form_core.services.form_acl import (
    can_access_form,
    can_edit_form,
    get_form_or_404,
    principal_clause,
)

logger = logging.getLogger(__name__)

FORM_SORT_COLUMNS = {
    "name": Form.name,
    "created_at": Form.created_at,
    "updated_at": Form.updated_at,
}


async def create_form(db: AsyncSession, caller: CallerIdentity, data: FormCreate) -> Form:
    """Create a form owned by the caller, with an empty draft version 1."""
    form = Form(
        name=data.name,
        description=data.description,
        owner_user_id=caller.subject_id,
        visibility=data.visibility.value,
        is_published=False,
    )
    db.add(form)
    await db.flush()

    draft = FormVersion(
        form_id=form.id,
        version=1,
        status=VersionStatus.DRAFT.value,
        created_by_user_id=caller.subject_id,
    )
    db.add(draft)
    await db.commit()
    await db.refresh(form)

    logger.info(f"Form {form.id} created by {caller.subject_id}")
    return form


async def get_form_detail(
    db: AsyncSession, form_id: uuid.UUID, caller: CallerIdentity
) -> tuple[Form, Optional[FormVersion], list[FormField]]:
    """
    Get a form with its latest draft version and fields.

    A form the caller cannot access is reported as not found.
    """
    form = await get_form_or_404(db, form_id)
    if not await can_access_form(db, form, caller):
        raise NotFoundError("Form not found")

    draft = await FormVersion.get_latest(db, form.id, VersionStatus.DRAFT)
    fields = await FormField.list_for_version(db, draft.id) if draft else []
    return form, draft, fields


async def update_form(
    db: AsyncSession, form_id: uuid.UUID, caller: CallerIdentity, data: FormUpdate
) -> tuple[Form, Optional[FormVersion], list[FormField]]:
    """
    Update form metadata and, when given, replace the draft's fields.

    Raises:
        NotFoundError: Form does not exist
        ForbiddenError: Caller cannot edit the form
    """
    form = await get_form_or_404(db, form_id)
    if not await can_edit_form(db, form, caller):
        raise ForbiddenError()

    if data.name is not None:
        form.name = data.name
    if data.description is not None:
        form.description = data.description
    if data.visibility is not None:
        form.visibility = data.visibility.value

    draft = await FormVersion.get_latest(db, form.id, VersionStatus.DRAFT)
    if draft and data.fields is not None:
        await db.execute(delete(FormField).where(FormField.version_id == draft.id))
        for order, field in enumerate(data.fields):
            db.add(
                FormField(
                    id=field.id or uuid.uuid4(),
                    form_id=form.id,
                    version_id=draft.id,
                    key=field.key,
                    label=field.label,
                    type=field.type,
                    order=order,
                    hidden=field.hidden,
                    required=field.required,
                    config=field.config,
                    default_value=field.default_value,
                )
            )
    if draft and data.list_config is not None:
        draft.list_config = data.list_config

    form.updated_at = func.now()
    await db.commit()
    await db.refresh(form)

    fields = await FormField.list_for_version(db, draft.id) if draft else []
    return form, draft, fields


async def delete_form(db: AsyncSession, form_id: uuid.UUID, caller: CallerIdentity) -> None:
    """
    Delete a form with its entries, fields, versions and ACL entries.

    Raises:
        NotFoundError: Form does not exist
        ForbiddenError: Caller cannot edit the form
    """
    form = await get_form_or_404(db, form_id)
    if not await can_edit_form(db, form, caller):
        raise ForbiddenError()

    await db.execute(delete(FormEntry).where(FormEntry.form_id == form.id))
    await db.execute(delete(FormField).where(FormField.form_id == form.id))
    await db.execute(delete(FormVersion).where(FormVersion.form_id == form.id))
    await db.execute(delete(FormAcl).where(FormAcl.form_id == form.id))
    await db.delete(form)
    await db.commit()

    logger.info(f"Form {form_id} deleted by {caller.subject_id}")


async def list_forms(
    db: AsyncSession,
    caller: CallerIdentity,
    mode: ScopeMode,
    page: int = 1,
    page_size: int = 25,
    search: Optional[str] = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> tuple[list[Form], int]:
    """
    List forms visible to the caller.

    Drafts are only ever listed for their owner (or an admin). Published forms
    are listed when the ``forms`` read scope is ``any``, or otherwise when one
    of the caller's principals holds an ACL entry on them.

    Returns:
        Tuple of (forms, total)
    """
    if mode == ScopeMode.NONE:
        raise ForbiddenError("Not authorized to read forms")

    conditions = []
    if not acl_model.is_admin(caller):
        if mode == ScopeMode.ANY:
            published = Form.is_published.is_(True)
        else:
            acl_form_ids = select(FormAcl.form_id).where(principal_clause(caller))
            published = Form.is_published.is_(True) & Form.id.in_(acl_form_ids)
        conditions.append(or_(Form.owner_user_id == caller.subject_id, published))

    if search:
        conditions.append(Form.name.ilike(contains_pattern(search), escape=LIKE_ESCAPE))

    count_result = await db.execute(select(func.count()).select_from(Form).where(*conditions))
    total = count_result.scalar_one()

    order_col = FORM_SORT_COLUMNS.get(sort_by, Form.created_at)
    order = order_col.asc() if sort_order == "asc" else order_col.desc()

    result = await db.execute(
        select(Form)
        .where(*conditions)
        .order_by(order)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total


def total_pages(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if page_size else 0


async def _next_version_number(db: AsyncSession, form_id: uuid.UUID) -> int:
    result = await db.execute(
        select(func.max(FormVersion.version)).where(FormVersion.form_id == form_id)
    )
    return (result.scalar_one_or_none() or 0) + 1


async def publish_form(
    db: AsyncSession, form_id: uuid.UUID, caller: CallerIdentity
) -> tuple[Form, FormVersion]:
    """
    Publish the latest draft of a form.

    The previous published version, if any, is archived (never deleted) in the
    same transaction as the new version is created.

    Raises:
        NotFoundError: Form does not exist
        ForbiddenError: Caller is not the owner
        NoDraftToPublishError: Form has no draft version
        EmptyFormError: Draft has no fields
    """
    form = await get_form_or_404(db, form_id)
    if not acl_model.is_owner(form, caller):
        raise ForbiddenError()

    draft = await FormVersion.get_latest(db, form.id, VersionStatus.DRAFT)
    if not draft:
        raise NoDraftToPublishError()

    draft_fields = await FormField.list_for_version(db, draft.id)
    if not draft_fields:
        raise EmptyFormError()

    await db.execute(
        update(FormVersion)
        .where(
            FormVersion.form_id == form.id,
            FormVersion.status == VersionStatus.PUBLISHED.value,
        )
        .values(status=VersionStatus.ARCHIVED.value)
    )

    published = FormVersion(
        form_id=form.id,
        version=await _next_version_number(db, form.id),
        status=VersionStatus.PUBLISHED.value,
        list_config=draft.list_config,
        created_by_user_id=caller.subject_id,
    )
    db.add(published)
    await db.flush()

    for field in draft_fields:
        db.add(
            FormField(
                form_id=form.id,
                version_id=published.id,
                key=field.key,
                label=field.label,
                type=field.type,
                order=field.order,
                hidden=field.hidden,
                required=field.required,
                config=field.config,
                default_value=field.default_value,
            )
        )

    form.is_published = True
    form.updated_at = func.now()
    await db.commit()
    await db.refresh(form)
    await db.refresh(published)

    logger.info(f"Form {form.id} published as version {published.version}")
    return form, published


async def unpublish_form(db: AsyncSession, form_id: uuid.UUID, caller: CallerIdentity) -> Form:
    """
    Unpublish a form, archiving its published version.

    Raises:
        NotFoundError: Form does not exist
        ForbiddenError: Caller is not the owner
        NotPublishedError: Form is not currently published
    """
    form = await get_form_or_404(db, form_id)
    if not acl_model.is_owner(form, caller):
        raise ForbiddenError()

    if not form.is_published:
        raise NotPublishedError()

    await db.execute(
        update(FormVersion)
        .where(
            FormVersion.form_id == form.id,
            FormVersion.status == VersionStatus.PUBLISHED.value,
        )
        .values(status=VersionStatus.ARCHIVED.value)
    )

    form.is_published = False
    form.updated_at = func.now()
    await db.commit()
    await db.refresh(form)

    logger.info(f"Form {form.id} unpublished")
    return form
