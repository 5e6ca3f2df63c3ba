"""Form ACL service - persisted grants and the checks that read them."""
import logging
import uuid
from collections.abc import Mapping
from typing import Any, Optional, Union

from pydantic import ValidationError
from sqlalchemy import and_, false, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from form_core.core import acl as acl_model
from form_core.core.auth import CallerIdentity
from form_core.core.exceptions import (
    DuplicatePrincipalError,
    ForbiddenError,
    InvalidPayloadError,
    NotFoundError,
    ResourceMismatchError,
)
from form_core.core.permissions import PermissionKey, PrincipalType
from form_core.models import Form, FormAcl
from form_core.schemas import AclEntryCreate

logger = logging.getLogger(__name__)

REQUIRED_ACL_FIELDS = ("principalType", "principalId", "permissions")


def principal_clause(caller: CallerIdentity):
    """SQL filter selecting ACL rows that name one of the caller's principals."""
    clauses = []
    if caller.subject_id:
        clauses.append(
            and_(
                FormAcl.principal_type == PrincipalType.USER.value,
                FormAcl.principal_id == caller.subject_id,
            )
        )
    if caller.roles:
        clauses.append(
            and_(
                FormAcl.principal_type == PrincipalType.ROLE.value,
                FormAcl.principal_id.in_(sorted(caller.roles)),
            )
        )
    if caller.groups:
        clauses.append(
            and_(
                FormAcl.principal_type == PrincipalType.GROUP.value,
                FormAcl.principal_id.in_(sorted(caller.groups)),
            )
        )
    return or_(*clauses) if clauses else false()


async def get_form_or_404(db: AsyncSession, form_id: uuid.UUID) -> Form:
    form = await Form.get_by_id(db, form_id)
    if not form:
        raise NotFoundError("Form not found")
    return form


async def load_caller_entries(
    db: AsyncSession, form_id: uuid.UUID, caller: CallerIdentity
) -> list[FormAcl]:
    """Load the ACL entries on a form that match the caller's principals."""
    result = await db.execute(
        select(FormAcl).where(FormAcl.form_id == form_id, principal_clause(caller))
    )
    return list(result.scalars().all())


def _needs_entries(form: Form, caller: CallerIdentity) -> bool:
    # Owner, admin and draft outcomes are decided without touching the ACL table
    return not (
        acl_model.is_owner(form, caller) or acl_model.is_admin(caller) or not form.is_published
    )


async def can_access_form(db: AsyncSession, form: Form, caller: CallerIdentity) -> bool:
    entries = await load_caller_entries(db, form.id, caller) if _needs_entries(form, caller) else []
    return acl_model.can_access(form, entries, caller)


async def has_form_permission(
    db: AsyncSession, form: Form, caller: CallerIdentity, permission: PermissionKey
) -> bool:
    entries = await load_caller_entries(db, form.id, caller) if _needs_entries(form, caller) else []
    return acl_model.has_permission(form, entries, caller, permission)


async def can_edit_form(db: AsyncSession, form: Form, caller: CallerIdentity) -> bool:
    entries = await load_caller_entries(db, form.id, caller) if _needs_entries(form, caller) else []
    return acl_model.can_edit(form, entries, caller)


async def can_manage_form_acl(db: AsyncSession, form: Form, caller: CallerIdentity) -> bool:
    return await has_form_permission(db, form, caller, PermissionKey.MANAGE_ACL)


async def list_acl_entries(db: AsyncSession, form: Form, caller: CallerIdentity) -> list[FormAcl]:
    """
    List every ACL entry on a form, newest first.

    Raises:
        ForbiddenError: Caller cannot manage the form's ACL
    """
    if not await can_manage_form_acl(db, form, caller):
        raise ForbiddenError()

    result = await db.execute(
        select(FormAcl).where(FormAcl.form_id == form.id).order_by(FormAcl.created_at.desc())
    )
    return list(result.scalars().all())


def parse_acl_payload(payload: Union[AclEntryCreate, Mapping[str, Any], None]) -> AclEntryCreate:
    """
    Validate an ACL creation payload.

    Accepts camelCase (principalType) or snake_case (principal_type) keys.

    Raises:
        InvalidPayloadError: With a description of what is missing or invalid
    """
    if isinstance(payload, AclEntryCreate):
        return payload

    try:
        return AclEntryCreate.model_validate(payload)
    except ValidationError as e:
        errors = e.errors()
        if any(err["type"] == "missing" for err in errors) or not isinstance(payload, Mapping):
            raise InvalidPayloadError(
                f"Missing required fields: {', '.join(REQUIRED_ACL_FIELDS)}"
            ) from e
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in errors
        )
        raise InvalidPayloadError(f"Invalid ACL entry: {details}") from e


async def find_acl_entry(
    db: AsyncSession, form_id: uuid.UUID, principal_type: str, principal_id: str
) -> Optional[FormAcl]:
    result = await db.execute(
        select(FormAcl).where(
            FormAcl.form_id == form_id,
            FormAcl.principal_type == principal_type,
            FormAcl.principal_id == principal_id,
        )
    )
    return result.scalar_one_or_none()


async def create_acl_entry(
    db: AsyncSession,
    form: Form,
    caller: CallerIdentity,
    payload: Union[AclEntryCreate, Mapping[str, Any], None],
) -> FormAcl:
    """
    Grant a permission set to a principal on a form.

    Raises:
        ForbiddenError: Caller cannot manage the form's ACL
        InvalidPayloadError: principal_type, principal_id or permissions missing/invalid
        DuplicatePrincipalError: An entry already exists for the principal
    """
    if not await can_manage_form_acl(db, form, caller):
        raise ForbiddenError()

    data = parse_acl_payload(payload)

    if await find_acl_entry(db, form.id, data.principal_type.value, data.principal_id):
        raise DuplicatePrincipalError()

    form_id = form.id
    acl = FormAcl(
        form_id=form_id,
        principal_type=data.principal_type.value,
        principal_id=data.principal_id,
        permissions=data.permissions,
        created_by=caller.subject_id,
    )
    db.add(acl)
    try:
        await db.commit()
    except IntegrityError as e:
        # Lost a race against a concurrent create; the unique index decides
        await db.rollback()
        logger.info(
            f"ACL insert rejected for form {form_id} "
            f"({data.principal_type.value}:{data.principal_id}): {e.orig}"
        )
        raise DuplicatePrincipalError() from e
    await db.refresh(acl)

    logger.info(f"ACL entry {acl.id} created on form {form_id} by {caller.subject_id}")
    return acl


async def delete_acl_entry(
    db: AsyncSession, form: Form, acl_id: uuid.UUID, caller: CallerIdentity
) -> None:
    """
    Remove an ACL entry from a form.

    Raises:
        NotFoundError: No entry with acl_id
        ResourceMismatchError: The entry belongs to a different form
        ForbiddenError: Caller cannot manage the form's ACL
    """
    result = await db.execute(select(FormAcl).where(FormAcl.id == acl_id))
    acl = result.scalar_one_or_none()

    if not acl:
        raise NotFoundError("ACL entry not found")

    if acl.form_id != form.id:
        raise ResourceMismatchError()

    if not await can_manage_form_acl(db, form, caller):
        raise ForbiddenError()

    await db.delete(acl)
    await db.commit()

    logger.info(f"ACL entry {acl_id} deleted from form {form.id} by {caller.subject_id}")
