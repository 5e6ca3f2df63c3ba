"""Action check client - asks the auth proxy whether a caller holds an action."""
import logging
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import quote

import httpx
from fastapi import Request
from pydantic import BaseModel, StrictBool, ValidationError

from form_core.core.config import settings

logger = logging.getLogger(__name__)

CHECK_PATH = "/api/proxy/auth/permissions/actions/check/"

SOURCE_UNAUTHENTICATED = "unauthenticated"
SOURCE_UNREACHABLE = "auth_unreachable"
SOURCE_INVALID_BODY = "auth_invalid_body"


@dataclass(frozen=True)
class Credentials:
    """
    Credential material forwarded to the auth proxy.

    token is the discrete bearer token (cookie first, then Authorization
    header). cookie_header is the raw Cookie header, forwarded as-is so the
    proxy can read whatever session cookie it expects.
    """

    token: Optional[str] = None
    cookie_header: Optional[str] = None
    origin: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.token and not self.cookie_header

    @classmethod
    def from_request(cls, request: Request, token_cookie: Optional[str] = None) -> "Credentials":
        token_cookie = token_cookie or settings.auth_token_cookie

        token = request.cookies.get(token_cookie) or None
        if not token:
            auth_header = request.headers.get("authorization") or ""
            if auth_header.startswith("Bearer "):
                token = auth_header[7:] or None

        return cls(
            token=token,
            cookie_header=request.headers.get("cookie") or None,
            origin=origin_from_request(request),
        )


def origin_from_request(request: Request) -> Optional[str]:
    """Build scheme://host for the inbound request, honouring proxy headers."""
    proto = request.headers.get("x-forwarded-proto") or (
        "https" if settings.environment == "production" else "http"
    )
    host = request.headers.get("x-forwarded-host") or request.headers.get("host")
    if not host:
        return None
    return f"{proto}://{host}"


@dataclass(frozen=True)
class ActionCheckResult:
    granted: bool
    # Diagnostic only: why the result is what it is. Never authorizes anything.
    source: Optional[str] = None


class ActionCheckResponse(BaseModel):
    has_permission: Optional[StrictBool] = None
    hasPermission: Optional[StrictBool] = None
    source: Optional[Any] = None

    @property
    def granted(self) -> bool:
        if self.has_permission is not None:
            return self.has_permission
        if self.hasPermission is not None:
            return self.hasPermission
        return False


class ActionCheckClient:
    """
    Client for the auth proxy's action check endpoint.

    One GET per check, no retries and no caching. Every failure resolves to a
    denied result with a source tag; nothing is raised to the caller.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        debug: bool = False,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/") if base_url else None
        self.debug = debug
        self.timeout = timeout
        self.transport = transport

    def check_url(self, credentials: Credentials, action_key: str) -> Optional[str]:
        base_url = self.base_url or credentials.origin
        if not base_url:
            return None
        return f"{base_url}{CHECK_PATH}{quote(action_key, safe='')}"

    async def check(
        self, credentials: Credentials, action_key: str, debug: Optional[bool] = None
    ) -> ActionCheckResult:
        """
        Check whether the caller holds an action.

        Args:
            credentials: Token and cookie material taken from the inbound request
            action_key: Action key, e.g. "form-core.forms.read.scope.own"
            debug: Overrides the client's debug flag for this call

        Returns:
            ActionCheckResult; granted is True only for a 2xx response whose
            body carries has_permission (or hasPermission) set to true
        """
        debug = self.debug if debug is None else debug

        if credentials.is_empty:
            logger.warning(f"[form-core authz] {action_key}: no token or cookie")
            return ActionCheckResult(granted=False, source=SOURCE_UNAUTHENTICATED)

        url = self.check_url(credentials, action_key)
        if url is None:
            logger.warning(f"[form-core authz] {action_key}: no auth base url")
            return ActionCheckResult(granted=False, source=SOURCE_UNREACHABLE)

        headers = {"Content-Type": "application/json"}
        if credentials.token:
            headers["Authorization"] = f"Bearer {credentials.token}"
        if credentials.cookie_header:
            headers["Cookie"] = credentials.cookie_header

        if debug:
            logger.info(f"[form-core authz] {action_key}: checking via {url}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"[form-core authz] {action_key}: auth unreachable: {e}")
            return ActionCheckResult(granted=False, source=SOURCE_UNREACHABLE)

        if not response.is_success:
            logger.warning(
                f"[form-core authz] {action_key}: auth returned status "
                f"{response.status_code}: {response.text[:500]}"
            )
            return ActionCheckResult(granted=False, source=f"auth_status_{response.status_code}")

        try:
            body = ActionCheckResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.warning(f"[form-core authz] {action_key}: unparseable response: {e}")
            return ActionCheckResult(granted=False, source=SOURCE_INVALID_BODY)

        result = ActionCheckResult(
            granted=body.granted,
            source=str(body.source) if body.source else None,
        )
        if debug:
            logger.info(
                f"[form-core authz] {action_key}: "
                f"granted={result.granted} source={result.source}"
            )
        return result


def get_action_check_client() -> ActionCheckClient:
    """FastAPI dependency building the client from process settings."""
    return ActionCheckClient(
        base_url=settings.auth_base_url,
        debug=settings.debug_form_core_authz,
        timeout=settings.auth_check_timeout,
    )


def get_credentials(request: Request) -> Credentials:
    return Credentials.from_request(request)
