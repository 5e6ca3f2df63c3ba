"""Scope mode lookup endpoint."""
from typing import Optional

from fastapi import APIRouter, Depends

from form_core.core.auth import CallerIdentity, get_current_caller
from form_core.core.permissions import ScopeEntity, ScopeVerb
from form_core.schemas import ScopeModeResponse
from form_core.services.action_check import (
    ActionCheckClient,
    Credentials,
    get_action_check_client,
    get_credentials,
)
from form_core.services.scope_mode import resolve_scope_mode

router = APIRouter(prefix="/scope", tags=["scope"])


@router.get("/{verb}", response_model=ScopeModeResponse)
async def get_scope_mode(
    verb: ScopeVerb,
    entity: Optional[ScopeEntity] = None,
    caller: CallerIdentity = Depends(get_current_caller),
    credentials: Credentials = Depends(get_credentials),
    client: ActionCheckClient = Depends(get_action_check_client),
):
    """Resolve the caller's effective scope mode for a verb (and entity)."""
    mode = await resolve_scope_mode(client, credentials, verb, entity)
    return ScopeModeResponse(verb=verb, entity=entity, mode=mode)
