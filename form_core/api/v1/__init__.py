"""API v1 router."""
from fastapi import APIRouter

from .endpoints import acl, entries, forms, scope

router = APIRouter()

router.include_router(forms.router)
router.include_router(acl.router)
router.include_router(entries.router)
router.include_router(scope.router)
