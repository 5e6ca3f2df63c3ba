"""
Permission taxonomy for forms and entries.

Two independent vocabularies live here:

ACL permissions (per-form grants stored in ``forms_acls``):
    READ, WRITE, DELETE, MANAGE_ACL

Scope modes (granted by the remote permission-action service):
    none < own < ldd < any

Action Key Format:
    form-core.<entity>.<verb>.scope.<mode>   (entity override)
    form-core.<verb>.scope.<mode>            (form-core default)

Where:
    - entity is ``forms`` or ``entries``
    - verb is ``read``, ``write`` or ``delete``
    - mode is ``none``, ``own``, ``ldd`` or ``any``

Examples:
    entity_scope_prefix(ScopeVerb.READ, ScopeEntity.FORMS) -> "form-core.forms.read.scope"
    scope_action_key("form-core.read.scope", ScopeMode.OWN) -> "form-core.read.scope.own"
"""
import enum
from typing import Iterable

ACTION_NAMESPACE = "form-core"

# Literal role strings treated as administrators. Both spellings are accepted
# and nothing else: no case folding.
ADMIN_ROLES = frozenset({"admin", "Admin"})


class PermissionKey(str, enum.Enum):
    READ = "READ"
    WRITE = "WRITE"
    DELETE = "DELETE"
    MANAGE_ACL = "MANAGE_ACL"


class PrincipalType(str, enum.Enum):
    USER = "user"
    GROUP = "group"
    ROLE = "role"


class Visibility(str, enum.Enum):
    PRIVATE = "private"
    PROJECT = "project"


class VersionStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class ScopeVerb(str, enum.Enum):
    READ = "read"
    WRITE = "write"
    DELETE = "delete"


class ScopeEntity(str, enum.Enum):
    FORMS = "forms"
    ENTRIES = "entries"


class ScopeMode(str, enum.Enum):
    NONE = "none"
    OWN = "own"
    LDD = "ldd"
    ANY = "any"


# Ascending breadth; checking in this order makes the most restrictive grant win.
SCOPE_MODES: tuple[ScopeMode, ...] = (
    ScopeMode.NONE,
    ScopeMode.OWN,
    ScopeMode.LDD,
    ScopeMode.ANY,
)

# Returned when the permission-action service grants no mode at all
DEFAULT_SCOPE_MODE = ScopeMode.OWN


def global_scope_prefix(verb: ScopeVerb) -> str:
    return f"{ACTION_NAMESPACE}.{ScopeVerb(verb).value}.scope"


def entity_scope_prefix(verb: ScopeVerb, entity: ScopeEntity) -> str:
    return f"{ACTION_NAMESPACE}.{ScopeEntity(entity).value}.{ScopeVerb(verb).value}.scope"


def scope_action_key(prefix: str, mode: ScopeMode) -> str:
    return f"{prefix}.{ScopeMode(mode).value}"


def normalize_permissions(values: Iterable[str]) -> list[str]:
    """
    Validate and de-duplicate ACL permission strings.

    Stored permission arrays are treated as sets: duplicates are dropped and
    the result is sorted so equal sets persist identically.

    Raises:
        ValueError: If a value is not a known PermissionKey
    """
    keys = {PermissionKey(value) for value in values}
    return sorted(key.value for key in keys)
