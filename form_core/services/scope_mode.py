"""
Scope mode resolution.

Resolves the effective scope mode for a verb (and optionally an entity) by
querying the auth proxy with a fixed, ordered list of action keys:

    1. form-core.<entity>.<verb>.scope.{none,own,ldd,any}   (entity override)
    2. form-core.<verb>.scope.{none,own,ldd,any}            (form-core default)
    3. own                                                  (fallback)

Candidates are checked one at a time and the first grant wins. Because modes
are checked in ascending breadth, a caller granted both ``own`` and ``any``
gets ``own``: the most restrictive grant wins.
"""
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Optional

from form_core.core.permissions import (
    DEFAULT_SCOPE_MODE,
    SCOPE_MODES,
    ScopeEntity,
    ScopeMode,
    ScopeVerb,
    entity_scope_prefix,
    global_scope_prefix,
    scope_action_key,
)
from form_core.services.action_check import ActionCheckClient, Credentials

logger = logging.getLogger(__name__)

ScopeCandidate = tuple[str, ScopeMode]
ActionCheck = Callable[[str], Awaitable[bool]]


def scope_prefixes(verb: ScopeVerb, entity: Optional[ScopeEntity] = None) -> list[str]:
    """Key prefixes in precedence order: entity override first, then default."""
    prefixes = []
    if entity is not None:
        prefixes.append(entity_scope_prefix(verb, entity))
    prefixes.append(global_scope_prefix(verb))
    return prefixes


def scope_candidates(prefixes: Sequence[str]) -> list[ScopeCandidate]:
    """Expand prefixes into (action_key, mode) pairs in check order."""
    return [(scope_action_key(prefix, mode), mode) for prefix in prefixes for mode in SCOPE_MODES]


async def first_granted(
    candidates: Sequence[ScopeCandidate], check: ActionCheck
) -> Optional[ScopeMode]:
    """
    Return the mode of the first candidate whose action is granted.

    Candidates are checked sequentially and the scan stops at the first grant,
    so later (broader) candidates are never queried once one succeeds.
    """
    for action_key, mode in candidates:
        if await check(action_key):
            return mode
    return None


async def resolve_scope_mode(
    client: ActionCheckClient,
    credentials: Credentials,
    verb: ScopeVerb,
    entity: Optional[ScopeEntity] = None,
) -> ScopeMode:
    """
    Resolve the effective scope mode for a caller.

    Issues at most eight action checks (four modes for each of two prefixes).
    Nothing is cached; every call asks the auth proxy again.

    Args:
        client: Action check client
        credentials: Caller's credential material
        verb: read, write or delete
        entity: forms or entries; None skips the entity override

    Returns:
        The granted mode, or ScopeMode.OWN when nothing is granted
    """
    verb = ScopeVerb(verb)
    entity = ScopeEntity(entity) if entity is not None else None

    async def check(action_key: str) -> bool:
        result = await client.check(credentials, action_key)
        return result.granted

    mode = await first_granted(scope_candidates(scope_prefixes(verb, entity)), check)
    if mode is None:
        entity_name = entity.value if entity else "-"
        logger.debug(
            f"No scope granted for {entity_name}/{verb.value}, "
            f"falling back to {DEFAULT_SCOPE_MODE.value}"
        )
        return DEFAULT_SCOPE_MODE
    return mode
