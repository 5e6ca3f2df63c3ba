"""Shared fixtures for form-core tests.

Persistence runs on an in-memory SQLite database (aiosqlite, one shared
connection through StaticPool). The permission-action service is replaced by
``httpx.MockTransport`` so no test touches the network.
"""
from urllib.parse import unquote

import httpx
import pytest
import pytest_asyncio
from jose import jwt
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from form_core.core.auth import CallerIdentity
from form_core.core.config import settings
from form_core.core.permissions import Visibility
from form_core.models import Base
from form_core.schemas import FormCreate, FormFieldInput, FormUpdate
from form_core.services import form_acl, form_lifecycle
from form_core.services.action_check import CHECK_PATH, ActionCheckClient

AUTH_BASE_URL = "http://auth.test"
TOKEN_SECRET = "test-secret"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_token(subject_id: str, roles=(), groups=()) -> str:
    """Encode a caller token the way the host's auth proxy would issue it."""
    claims = {"sub": subject_id, "roles": list(roles), "groups": list(groups)}
    return jwt.encode(claims, TOKEN_SECRET, algorithm="HS256")


def action_key_of(request: httpx.Request) -> str:
    """Recover the action key from an oracle request URL."""
    path = request.url.raw_path.decode("ascii").split("?", 1)[0]
    return unquote(path.rsplit("/", 1)[-1])


class FakeOracle:
    """
    Stand-in for the permission-action service.

    Grants exactly the action keys in ``granted`` and records every key it
    was asked about, in order.
    """

    def __init__(self, granted=(), source="test-oracle"):
        self.granted = set(granted)
        self.source = source
        self.calls: list[str] = []
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        assert CHECK_PATH in request.url.path
        key = action_key_of(request)
        self.calls.append(key)
        self.requests.append(request)
        return httpx.Response(
            200,
            json={"has_permission": key in self.granted, "source": self.source},
        )

    def client(self, **kwargs) -> ActionCheckClient:
        kwargs.setdefault("base_url", AUTH_BASE_URL)
        return ActionCheckClient(transport=httpx.MockTransport(self), **kwargs)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def verified_tokens(monkeypatch):
    """Verify caller tokens against the secret make_token signs with."""
    monkeypatch.setattr(settings, "jwt_secret", TOKEN_SECRET)
    monkeypatch.setattr(settings, "trust_unverified_claims", False)


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Callers
# ---------------------------------------------------------------------------


@pytest.fixture
def owner():
    return CallerIdentity(subject_id="user-owner", roles=frozenset({"editor"}))


@pytest.fixture
def alice():
    return CallerIdentity(subject_id="user-alice", roles=frozenset({"viewer"}))


@pytest.fixture
def bob():
    return CallerIdentity(subject_id="user-bob", groups=frozenset({"grp-field"}))


@pytest.fixture
def admin():
    return CallerIdentity(subject_id="user-admin", roles=frozenset({"admin"}))


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def make_form(db):
    """Create a form through the lifecycle service, optionally published."""

    async def _make(
        caller: CallerIdentity,
        name: str = "Site inspection",
        fields: int = 2,
        published: bool = False,
        visibility: Visibility = Visibility.PRIVATE,
    ):
        form = await form_lifecycle.create_form(
            db, caller, FormCreate(name=name, visibility=visibility)
        )
        if fields:
            await form_lifecycle.update_form(
                db,
                form.id,
                caller,
                FormUpdate(
                    fields=[
                        FormFieldInput(key=f"field_{i}", label=f"Field {i}", type="text")
                        for i in range(fields)
                    ]
                ),
            )
        if published:
            form, _ = await form_lifecycle.publish_form(db, form.id, caller)
        return form

    return _make


@pytest_asyncio.fixture
async def grant(db, owner):
    """Create an ACL entry on a form as its owner."""

    async def _grant(form, principal_type: str, principal_id: str, permissions):
        return await form_acl.create_acl_entry(
            db,
            form,
            owner,
            {
                "principalType": principal_type,
                "principalId": principal_id,
                "permissions": list(permissions),
            },
        )

    return _grant
