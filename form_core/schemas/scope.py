"""Scope mode schemas."""
from typing import Optional

from pydantic import BaseModel

from form_core.core.permissions import ScopeEntity, ScopeMode, ScopeVerb


class ScopeModeResponse(BaseModel):
    verb: ScopeVerb
    entity: Optional[ScopeEntity] = None
    mode: ScopeMode
