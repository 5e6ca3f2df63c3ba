"""Tests for scope mode resolution."""
import httpx
import pytest

from form_core.core.permissions import (
    SCOPE_MODES,
    ScopeEntity,
    ScopeMode,
    ScopeVerb,
    entity_scope_prefix,
    global_scope_prefix,
    scope_action_key,
)
from form_core.services.action_check import ActionCheckClient, Credentials
from form_core.services.scope_mode import (
    first_granted,
    resolve_scope_mode,
    scope_candidates,
    scope_prefixes,
)

from conftest import AUTH_BASE_URL, FakeOracle

CREDS = Credentials(token="caller-token")


class TestActionKeys:
    def test_prefixes(self):
        assert global_scope_prefix(ScopeVerb.READ) == "form-core.read.scope"
        assert entity_scope_prefix(ScopeVerb.DELETE, ScopeEntity.ENTRIES) == (
            "form-core.entries.delete.scope"
        )
        assert scope_action_key("form-core.read.scope", ScopeMode.LDD) == (
            "form-core.read.scope.ldd"
        )

    def test_entity_prefix_comes_first(self):
        assert scope_prefixes(ScopeVerb.WRITE, ScopeEntity.FORMS) == [
            "form-core.forms.write.scope",
            "form-core.write.scope",
        ]
        assert scope_prefixes(ScopeVerb.WRITE) == ["form-core.write.scope"]

    def test_candidates_in_ascending_breadth(self):
        candidates = scope_candidates(["a", "b"])
        assert [key for key, _ in candidates] == [
            "a.none", "a.own", "a.ldd", "a.any",
            "b.none", "b.own", "b.ldd", "b.any",
        ]
        assert [mode for _, mode in candidates] == list(SCOPE_MODES) * 2

    def test_modes_ascend_in_breadth(self):
        assert SCOPE_MODES == (ScopeMode.NONE, ScopeMode.OWN, ScopeMode.LDD, ScopeMode.ANY)


class TestFirstGranted:
    """The generic first-match scan."""

    @pytest.mark.asyncio
    async def test_stops_at_first_grant(self):
        asked = []

        async def check(key):
            asked.append(key)
            return key in {"p.own", "p.any"}

        mode = await first_granted(scope_candidates(["p"]), check)
        assert mode == ScopeMode.OWN
        assert asked == ["p.none", "p.own"]

    @pytest.mark.asyncio
    async def test_nothing_granted(self):
        async def check(key):
            return False

        assert await first_granted(scope_candidates(["p"]), check) is None


class TestResolveScopeMode:
    @pytest.mark.asyncio
    async def test_own_granted_none_denied(self):
        oracle = FakeOracle(granted={"form-core.forms.read.scope.own"}, source="role:admin")

        mode = await resolve_scope_mode(oracle.client(), CREDS, ScopeVerb.READ, ScopeEntity.FORMS)
        assert mode == ScopeMode.OWN
        assert oracle.calls == [
            "form-core.forms.read.scope.none",
            "form-core.forms.read.scope.own",
        ]

    @pytest.mark.asyncio
    async def test_most_restrictive_grant_wins(self):
        oracle = FakeOracle(
            granted={
                "form-core.entries.write.scope.any",
                "form-core.entries.write.scope.ldd",
            }
        )
        mode = await resolve_scope_mode(
            oracle.client(), CREDS, ScopeVerb.WRITE, ScopeEntity.ENTRIES
        )
        assert mode == ScopeMode.LDD

    @pytest.mark.asyncio
    async def test_entity_prefix_beats_global(self):
        oracle = FakeOracle(
            granted={"form-core.read.scope.none", "form-core.forms.read.scope.any"}
        )
        mode = await resolve_scope_mode(oracle.client(), CREDS, ScopeVerb.READ, ScopeEntity.FORMS)
        assert mode == ScopeMode.ANY
        assert all(key.startswith("form-core.forms.") for key in oracle.calls)

    @pytest.mark.asyncio
    async def test_global_prefix_after_entity_exhausted(self):
        oracle = FakeOracle(granted={"form-core.delete.scope.none"})
        mode = await resolve_scope_mode(
            oracle.client(), CREDS, ScopeVerb.DELETE, ScopeEntity.ENTRIES
        )
        assert mode == ScopeMode.NONE
        assert len(oracle.calls) == 5
        assert oracle.calls[-1] == "form-core.delete.scope.none"

    @pytest.mark.asyncio
    async def test_falls_back_to_own_after_eight_calls(self):
        oracle = FakeOracle()
        mode = await resolve_scope_mode(oracle.client(), CREDS, ScopeVerb.READ, ScopeEntity.FORMS)

        assert mode == ScopeMode.OWN
        assert oracle.calls == [
            "form-core.forms.read.scope.none",
            "form-core.forms.read.scope.own",
            "form-core.forms.read.scope.ldd",
            "form-core.forms.read.scope.any",
            "form-core.read.scope.none",
            "form-core.read.scope.own",
            "form-core.read.scope.ldd",
            "form-core.read.scope.any",
        ]

    @pytest.mark.asyncio
    async def test_without_entity_checks_global_only(self):
        oracle = FakeOracle()
        mode = await resolve_scope_mode(oracle.client(), CREDS, ScopeVerb.WRITE)

        assert mode == ScopeMode.OWN
        assert len(oracle.calls) == 4
        assert all(key.startswith("form-core.write.scope.") for key in oracle.calls)

    @pytest.mark.asyncio
    async def test_unauthenticated_falls_back_without_network(self):
        oracle = FakeOracle(granted={"form-core.read.scope.any"})
        mode = await resolve_scope_mode(
            oracle.client(), Credentials(), ScopeVerb.READ, ScopeEntity.FORMS
        )
        assert mode == ScopeMode.OWN
        assert oracle.calls == []

    @pytest.mark.asyncio
    async def test_oracle_errors_never_widen(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500)

        client = ActionCheckClient(base_url=AUTH_BASE_URL, transport=httpx.MockTransport(handler))
        mode = await resolve_scope_mode(client, CREDS, ScopeVerb.READ, ScopeEntity.ENTRIES)

        assert mode == ScopeMode.OWN
        assert len(calls) == 8

    @pytest.mark.asyncio
    async def test_no_caching_between_calls(self):
        oracle = FakeOracle(granted={"form-core.read.scope.any"})
        client = oracle.client()

        await resolve_scope_mode(client, CREDS, ScopeVerb.READ)
        oracle.granted = {"form-core.read.scope.none"}
        mode = await resolve_scope_mode(client, CREDS, ScopeVerb.READ)

        assert mode == ScopeMode.NONE
        assert len(oracle.calls) == 5
