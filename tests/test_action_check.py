"""Tests for the action check client."""
import logging

import httpx
import pytest
from starlette.requests import Request

from form_core.services.action_check import (
    SOURCE_INVALID_BODY,
    SOURCE_UNAUTHENTICATED,
    SOURCE_UNREACHABLE,
    ActionCheckClient,
    ActionCheckResponse,
    Credentials,
)

from conftest import AUTH_BASE_URL, FakeOracle

KEY = "form-core.forms.read.scope.own"


def client_for(handler, **kwargs) -> ActionCheckClient:
    kwargs.setdefault("base_url", AUTH_BASE_URL)
    return ActionCheckClient(transport=httpx.MockTransport(handler), **kwargs)


def make_request(headers: dict) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/api/forms",
        "query_string": b"",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
    }
    return Request(scope)


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


class TestCredentials:
    """Locating credential material on an inbound request."""

    def test_cookie_token_takes_precedence_over_header(self):
        request = make_request(
            {
                "cookie": "hit_token=cookie-token; theme=dark",
                "authorization": "Bearer header-token",
                "host": "forms.test",
            }
        )
        creds = Credentials.from_request(request)
        assert creds.token == "cookie-token"
        assert creds.cookie_header == "hit_token=cookie-token; theme=dark"

    def test_bearer_header_used_without_token_cookie(self):
        request = make_request(
            {"cookie": "session=opaque", "authorization": "Bearer header-token"}
        )
        creds = Credentials.from_request(request)
        assert creds.token == "header-token"
        assert creds.cookie_header == "session=opaque"

    def test_raw_cookie_kept_without_discrete_token(self):
        request = make_request({"cookie": "session=opaque"})
        creds = Credentials.from_request(request)
        assert creds.token is None
        assert creds.cookie_header == "session=opaque"
        assert not creds.is_empty

    def test_nothing_present_is_empty(self):
        creds = Credentials.from_request(make_request({"host": "forms.test"}))
        assert creds.is_empty

    def test_origin_honours_forwarded_headers(self):
        request = make_request(
            {
                "host": "internal:8000",
                "x-forwarded-proto": "https",
                "x-forwarded-host": "forms.example.com",
            }
        )
        assert Credentials.from_request(request).origin == "https://forms.example.com"


# ---------------------------------------------------------------------------
# Response body
# ---------------------------------------------------------------------------


class TestActionCheckResponse:
    def test_snake_case_key(self):
        assert ActionCheckResponse.model_validate({"has_permission": True}).granted

    def test_camel_case_key(self):
        assert ActionCheckResponse.model_validate({"hasPermission": True}).granted

    def test_missing_key_is_denial(self):
        assert not ActionCheckResponse.model_validate({"source": "x"}).granted


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class TestActionCheckClient:
    """Every failure resolves to a denied, tagged result."""

    @pytest.mark.asyncio
    async def test_no_credentials_short_circuits(self):
        oracle = FakeOracle(granted={KEY})
        result = await oracle.client().check(Credentials(), KEY)

        assert result.granted is False
        assert result.source == SOURCE_UNAUTHENTICATED
        assert oracle.calls == []

    @pytest.mark.asyncio
    async def test_granted_with_source(self):
        def handler(request):
            return httpx.Response(200, json={"has_permission": True, "source": "role:admin"})

        result = await client_for(handler).check(Credentials(token="t"), KEY)
        assert result.granted is True
        assert result.source == "role:admin"

    @pytest.mark.asyncio
    async def test_camel_case_grant(self):
        def handler(request):
            return httpx.Response(200, json={"hasPermission": True})

        result = await client_for(handler).check(Credentials(token="t"), KEY)
        assert result.granted is True
        assert result.source is None

    @pytest.mark.asyncio
    async def test_explicit_denial(self):
        def handler(request):
            return httpx.Response(200, json={"has_permission": False, "source": "policy"})

        result = await client_for(handler).check(Credentials(token="t"), KEY)
        assert result.granted is False
        assert result.source == "policy"

    @pytest.mark.asyncio
    async def test_error_status_is_tagged(self):
        def handler(request):
            return httpx.Response(503, text="upstream down")

        result = await client_for(handler).check(Credentials(token="t"), KEY)
        assert result.granted is False
        assert result.source == "auth_status_503"

    @pytest.mark.asyncio
    async def test_transport_failure_is_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        result = await client_for(handler).check(Credentials(token="t"), KEY)
        assert result.granted is False
        assert result.source == SOURCE_UNREACHABLE

    @pytest.mark.asyncio
    async def test_timeout_is_unreachable(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        result = await client_for(handler).check(Credentials(token="t"), KEY)
        assert result.source == SOURCE_UNREACHABLE

    @pytest.mark.asyncio
    async def test_no_base_url_is_unreachable(self):
        oracle = FakeOracle(granted={KEY})
        client = ActionCheckClient(transport=httpx.MockTransport(oracle))

        result = await client.check(Credentials(token="t"), KEY)
        assert result.source == SOURCE_UNREACHABLE
        assert oracle.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, text="<html>login</html>"),
            httpx.Response(200, json={"has_permission": "yes"}),
            httpx.Response(200, json=[True]),
        ],
    )
    async def test_unparseable_body_is_denial(self, response):
        result = await client_for(lambda request: response).check(Credentials(token="t"), KEY)
        assert result.granted is False
        assert result.source == SOURCE_INVALID_BODY

    @pytest.mark.asyncio
    async def test_forwards_token_and_cookie(self):
        oracle = FakeOracle(granted={KEY})
        creds = Credentials(token="abc", cookie_header="hit_token=abc; theme=dark")
        await oracle.client().check(creds, KEY)

        sent = oracle.requests[0]
        assert sent.method == "GET"
        assert sent.headers["authorization"] == "Bearer abc"
        assert sent.headers["cookie"] == "hit_token=abc; theme=dark"

    @pytest.mark.asyncio
    async def test_cookie_only_sends_no_authorization(self):
        oracle = FakeOracle(granted={KEY})
        result = await oracle.client().check(Credentials(cookie_header="session=opaque"), KEY)

        assert result.granted is True
        assert "authorization" not in oracle.requests[0].headers

    @pytest.mark.asyncio
    async def test_action_key_is_url_encoded(self):
        oracle = FakeOracle()
        await oracle.client().check(Credentials(token="t"), "form-core.odd key/with slash")

        assert str(oracle.requests[0].url).endswith(
            "/api/proxy/auth/permissions/actions/check/form-core.odd%20key%2Fwith%20slash"
        )
        assert oracle.calls == ["form-core.odd key/with slash"]

    @pytest.mark.asyncio
    async def test_falls_back_to_request_origin(self):
        oracle = FakeOracle(granted={KEY})
        client = ActionCheckClient(transport=httpx.MockTransport(oracle))
        creds = Credentials(token="t", origin="http://forms.test")

        result = await client.check(creds, KEY)
        assert result.granted is True
        assert oracle.requests[0].url.host == "forms.test"

    @pytest.mark.asyncio
    async def test_debug_logging_does_not_change_result(self, caplog):
        oracle = FakeOracle(granted={KEY})
        caplog.set_level(logging.INFO, logger="form_core.services.action_check")

        quiet = await oracle.client().check(Credentials(token="t"), KEY)
        assert not any("checking via" in r.getMessage() for r in caplog.records)

        loud = await oracle.client(debug=True).check(Credentials(token="t"), KEY)
        assert any("checking via" in r.getMessage() for r in caplog.records)
        assert quiet == loud

    @pytest.mark.asyncio
    async def test_error_paths_logged_without_debug(self, caplog):
        caplog.set_level(logging.WARNING, logger="form_core.services.action_check")
        await ActionCheckClient(base_url=AUTH_BASE_URL).check(Credentials(), KEY)

        assert any("no token or cookie" in r.getMessage() for r in caplog.records)
