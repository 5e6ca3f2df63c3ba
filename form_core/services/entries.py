"""Form entry service - records submitted against a form."""
import logging
import uuid
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from form_core.core import acl as acl_model
from form_core.core.auth import CallerIdentity
from form_core.core.exceptions import ForbiddenError, FormCoreError, NotFoundError
from form_core.core.permissions import ScopeMode, VersionStatus, Visibility
from form_core.models import Form, FormEntry, FormField, FormVersion
from form_core.models.base import LIKE_ESCAPE, contains_pattern
from form_core.services.form_acl import can_access_form

logger = logging.getLogger(__name__)

ENTRY_SORT_COLUMNS = {
    "created_at": FormEntry.created_at,
    "updated_at": FormEntry.updated_at,
}


def compute_search_text(data: dict[str, Any]) -> str:
    """
    Flatten entry data into searchable text.

    Strings, numbers and booleans are kept; reference objects contribute
    their ``label``. Lists and anything else are skipped.
    """
    parts = []
    for value in (data or {}).values():
        if value is None:
            continue
        if isinstance(value, str):
            parts.append(value)
        elif isinstance(value, bool):
            parts.append("true" if value else "false")
        elif isinstance(value, (int, float)):
            parts.append(str(value))
        elif isinstance(value, dict):
            label = value.get("label")
            if isinstance(label, str) and label:
                parts.append(label)
    return " ".join(parts)


async def can_use_entries(db: AsyncSession, form: Form, caller: CallerIdentity) -> bool:
    """
    Check whether the caller may work with a form's entries.

    Anyone who can access the form may, and so may anyone at all once a form
    is published with project visibility.
    """
    if form.is_published and form.visibility == Visibility.PROJECT.value:
        return True
    return await can_access_form(db, form, caller)


def restricted_to_own(form: Form, caller: CallerIdentity, mode: ScopeMode) -> bool:
    """
    Whether the caller only sees entries they created.

    ``ldd`` is treated like ``own`` here: the organisational boundary it
    stands for is not known to this service, so it never widens access.
    """
    if mode in (ScopeMode.OWN, ScopeMode.LDD):
        return True
    if form.visibility == Visibility.PRIVATE.value:
        return not (acl_model.is_owner(form, caller) or acl_model.is_admin(caller))
    return False


async def _require_entry_access(
    db: AsyncSession, form: Form, caller: CallerIdentity, mode: ScopeMode
) -> None:
    if mode == ScopeMode.NONE:
        raise ForbiddenError("Not authorized for entries")
    if not await can_use_entries(db, form, caller):
        raise ForbiddenError()


async def list_entries(
    db: AsyncSession,
    form: Form,
    caller: CallerIdentity,
    mode: ScopeMode,
    page: int = 1,
    page_size: int = 25,
    search: Optional[str] = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> tuple[list[FormEntry], int, Optional[FormVersion], list[FormField]]:
    """
    List entries of a form along with the published fields.

    Returns:
        Tuple of (entries, total, published_version, published_fields)
    """
    await _require_entry_access(db, form, caller, mode)

    conditions = [FormEntry.form_id == form.id]
    if restricted_to_own(form, caller, mode):
        conditions.append(FormEntry.created_by_user_id == caller.subject_id)
    if search:
        conditions.append(FormEntry.search_text.ilike(contains_pattern(search), escape=LIKE_ESCAPE))

    count_result = await db.execute(select(func.count()).select_from(FormEntry).where(*conditions))
    total = count_result.scalar_one()

    order_col = ENTRY_SORT_COLUMNS.get(sort_by, FormEntry.created_at)
    order = order_col.asc() if sort_order == "asc" else order_col.desc()

    result = await db.execute(
        select(FormEntry)
        .where(*conditions)
        .order_by(order)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    entries = list(result.scalars().all())

    published = await FormVersion.get_latest(db, form.id, VersionStatus.PUBLISHED)
    fields = await FormField.list_for_version(db, published.id) if published else []
    return entries, total, published, fields


async def create_entry(
    db: AsyncSession, form: Form, caller: CallerIdentity, mode: ScopeMode, data: dict[str, Any]
) -> FormEntry:
    await _require_entry_access(db, form, caller, mode)

    entry = FormEntry(
        form_id=form.id,
        data=data,
        search_text=compute_search_text(data),
        created_by_user_id=caller.subject_id,
        updated_by_user_id=caller.subject_id,
    )
    db.add(entry)
    await db.commit()
    await db.refresh(entry)

    logger.info(f"Entry {entry.id} created on form {form.id} by {caller.subject_id}")
    return entry


async def _load_entry(
    db: AsyncSession,
    form: Form,
    entry_id: uuid.UUID,
    caller: CallerIdentity,
    mode: ScopeMode,
    out_of_scope: FormCoreError,
) -> FormEntry:
    await _require_entry_access(db, form, caller, mode)

    result = await db.execute(
        select(FormEntry).where(FormEntry.id == entry_id, FormEntry.form_id == form.id)
    )
    entry = result.scalar_one_or_none()
    if not entry:
        raise NotFoundError("Entry not found")

    if restricted_to_own(form, caller, mode) and entry.created_by_user_id != caller.subject_id:
        raise out_of_scope
    return entry


async def get_entry(
    db: AsyncSession, form: Form, entry_id: uuid.UUID, caller: CallerIdentity, mode: ScopeMode
) -> FormEntry:
    """
    Get one entry.

    An entry outside the caller's scope is reported as not found.
    """
    return await _load_entry(
        db, form, entry_id, caller, mode, NotFoundError("Entry not found")
    )


async def update_entry(
    db: AsyncSession,
    form: Form,
    entry_id: uuid.UUID,
    caller: CallerIdentity,
    mode: ScopeMode,
    data: dict[str, Any],
) -> FormEntry:
    entry = await _load_entry(
        db, form, entry_id, caller, mode, ForbiddenError("Not authorized to change this entry")
    )

    entry.data = data
    entry.search_text = compute_search_text(data)
    entry.updated_by_user_id = caller.subject_id
    await db.commit()
    await db.refresh(entry)
    return entry


async def delete_entry(
    db: AsyncSession, form: Form, entry_id: uuid.UUID, caller: CallerIdentity, mode: ScopeMode
) -> None:
    entry = await _load_entry(
        db, form, entry_id, caller, mode, ForbiddenError("Not authorized to change this entry")
    )

    await db.delete(entry)
    await db.commit()

    logger.info(f"Entry {entry_id} deleted from form {form.id} by {caller.subject_id}")
