"""Caller identity extraction and authorization dependencies."""
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt

from form_core.core.config import settings
from form_core.core.exceptions import UnauthenticatedError
from form_core.core.permissions import ScopeEntity, ScopeMode, ScopeVerb
from form_core.services.action_check import (
    SOURCE_UNAUTHENTICATED,
    ActionCheckClient,
    ActionCheckResult,
    Credentials,
    get_action_check_client,
    get_credentials,
)
from form_core.services.scope_mode import resolve_scope_mode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallerIdentity:
    """The principal set of one caller, valid for the duration of a request."""

    subject_id: str
    roles: frozenset[str] = field(default_factory=frozenset)
    groups: frozenset[str] = field(default_factory=frozenset)
    email: Optional[str] = None


def decode_claims(token: str) -> Optional[dict[str, Any]]:
    """
    Decode the caller's token claims.

    The signature is verified against jwt_secret. Claims are only read
    unverified when trust_unverified_claims is set explicitly; with neither,
    no token yields claims.
    """
    try:
        if settings.jwt_secret:
            return jwt.decode(
                token,
                settings.jwt_secret,
                algorithms=[settings.jwt_algorithm],
                options={"verify_aud": False},
            )
        if settings.trust_unverified_claims:
            return jwt.get_unverified_claims(token)
        logger.warning("No jwt_secret configured, rejecting caller token")
        return None
    except JWTError as e:
        logger.warning(f"JWT decode failed: {e}")
        return None


def _string_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    items = []
    for item in value:
        if isinstance(item, str):
            items.append(item)
        elif isinstance(item, dict):
            # Support both {"id": "..."} and {"name": "..."}
            name = item.get("id", item.get("name"))
            if name:
                items.append(str(name))
    return items


def caller_from_claims(claims: dict[str, Any]) -> Optional[CallerIdentity]:
    subject_id = claims.get("sub")
    if not subject_id:
        return None
    return CallerIdentity(
        subject_id=str(subject_id),
        roles=frozenset(_string_list(claims.get("roles"))),
        groups=frozenset(_string_list(claims.get("groups"))),
        email=claims.get("email"),
    )


def extract_caller(credentials: Credentials) -> Optional[CallerIdentity]:
    """Build the caller identity from the discrete token, or None."""
    if not credentials.token:
        return None
    claims = decode_claims(credentials.token)
    if not claims:
        return None
    return caller_from_claims(claims)


async def get_current_caller(
    request: Request, credentials: Credentials = Depends(get_credentials)
) -> CallerIdentity:
    """
    Get the authenticated caller.

    Raises:
        UnauthenticatedError: If no identity can be extracted
    """
    caller = extract_caller(credentials)
    if caller is None:
        raise UnauthenticatedError()

    # Store caller in request state for logging
    request.state.user_id = caller.subject_id
    return caller


def set_action_used(request: Request, action_key: str, granted: bool = True):
    """Store the action decision in request state for audit logging."""
    request.state.action_used = action_key
    request.state.action_granted = granted


def require_action(action_key: str):
    """
    Dependency factory to require a granted action.

    Usage:
        @router.get("/forms", dependencies=[Depends(require_action("form-core.forms.read"))])

    Missing credentials produce 401; any other denial (including an
    unreachable auth proxy) produces 403.
    """

    async def action_checker(
        request: Request,
        credentials: Credentials = Depends(get_credentials),
        client: ActionCheckClient = Depends(get_action_check_client),
    ) -> ActionCheckResult:
        result = await client.check(credentials, action_key)
        set_action_used(request, action_key, result.granted)

        if result.granted:
            return result

        if result.source == SOURCE_UNAUTHENTICATED:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"error": "Unauthorized", "action": action_key},
            )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "Not authorized", "action": action_key},
        )

    return action_checker


def scope_mode_for(verb: ScopeVerb, entity: Optional[ScopeEntity] = None):
    """
    Dependency factory resolving the caller's scope mode for a verb/entity.

    Usage:
        @router.get("/forms")
        async def list_forms(mode: ScopeMode = Depends(scope_mode_for(ScopeVerb.READ, ScopeEntity.FORMS))):
            ...
    """

    async def scope_resolver(
        request: Request,
        credentials: Credentials = Depends(get_credentials),
        client: ActionCheckClient = Depends(get_action_check_client),
    ) -> ScopeMode:
        mode = await resolve_scope_mode(client, credentials, verb, entity)
        request.state.scope_mode = mode.value
        return mode

    return scope_resolver
