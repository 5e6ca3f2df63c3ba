"""
ACL permission model for forms.

Decisions are made from three inputs only: the form (owner and publish
state), the ACL entries stored for it, and the caller's principal set. No
I/O happens here; services/form_acl.py loads the rows and delegates.

Access rules:
    1. The owner passes every check, whatever the publish state.
    2. A caller holding the literal role ``admin`` or ``Admin`` passes every check.
    3. A draft (unpublished) form admits nobody else; its ACL entries are inert.
    4. On a published form the caller's effective permissions are the union
       of ``permissions`` across every entry whose principal matches them:
         - user entries match the subject id
         - role entries match one of the caller's roles
         - group entries match one of the caller's pre-resolved groups
"""
from collections.abc import Iterable
from typing import Protocol

from form_core.core.auth import CallerIdentity
from form_core.core.permissions import ADMIN_ROLES, PermissionKey, PrincipalType


class FormLike(Protocol):
    owner_user_id: str
    is_published: bool


class AclEntryLike(Protocol):
    principal_type: str
    principal_id: str
    permissions: list[str]


def is_owner(form: FormLike, caller: CallerIdentity) -> bool:
    return bool(caller.subject_id) and form.owner_user_id == caller.subject_id


def is_admin(caller: CallerIdentity) -> bool:
    return not ADMIN_ROLES.isdisjoint(caller.roles)


def principal_matches(entry: AclEntryLike, caller: CallerIdentity) -> bool:
    """Check whether an ACL entry names one of the caller's principals."""
    principal_type = entry.principal_type
    if principal_type == PrincipalType.USER.value:
        return entry.principal_id == caller.subject_id
    if principal_type == PrincipalType.ROLE.value:
        return entry.principal_id in caller.roles
    if principal_type == PrincipalType.GROUP.value:
        return entry.principal_id in caller.groups
    return False


def matching_entries(
    entries: Iterable[AclEntryLike], caller: CallerIdentity
) -> list[AclEntryLike]:
    return [entry for entry in entries if principal_matches(entry, caller)]


def effective_permissions(
    form: FormLike, entries: Iterable[AclEntryLike], caller: CallerIdentity
) -> frozenset[PermissionKey]:
    """
    Union of ACL permissions granted to the caller on a form.

    Owner and admin status are not reflected here; callers check those first.
    Returns an empty set for draft forms.
    """
    if not form.is_published:
        return frozenset()

    granted: set[PermissionKey] = set()
    for entry in matching_entries(entries, caller):
        for value in entry.permissions or []:
            try:
                granted.add(PermissionKey(value))
            except ValueError:
                # Unknown strings grant nothing
                continue
    return frozenset(granted)


def can_access(form: FormLike, entries: Iterable[AclEntryLike], caller: CallerIdentity) -> bool:
    """
    Check if the caller may see a form.

    Owner and admins always; otherwise the form must be published and at least
    one ACL entry must match the caller, whatever permissions it carries.
    """
    if is_owner(form, caller) or is_admin(caller):
        return True
    if not form.is_published:
        return False
    return bool(matching_entries(entries, caller))


def has_permission(
    form: FormLike,
    entries: Iterable[AclEntryLike],
    caller: CallerIdentity,
    permission: PermissionKey,
) -> bool:
    if is_owner(form, caller) or is_admin(caller):
        return True
    return PermissionKey(permission) in effective_permissions(form, entries, caller)


def can_edit(form: FormLike, entries: Iterable[AclEntryLike], caller: CallerIdentity) -> bool:
    """
    Gate for updating and deleting the form itself.

    Form edits need MANAGE_ACL; WRITE and DELETE grants alone do not allow them.
    """
    return has_permission(form, entries, caller, PermissionKey.MANAGE_ACL)


def can_manage_acl(
    form: FormLike, entries: Iterable[AclEntryLike], caller: CallerIdentity
) -> bool:
    """Gate for listing, creating and deleting a form's ACL entries."""
    return has_permission(form, entries, caller, PermissionKey.MANAGE_ACL)
