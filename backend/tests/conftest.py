from __future__ import annotations

import os
import uuid
from types import SimpleNamespace

# Must be set before backoffice.core.config is imported.
os.environ.setdefault("DATABASE_URL_ASYNC", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from backoffice.auth.context import Actor, ContextResolver
from backoffice.auth.gate import AuthorizationGate
from backoffice.db.base import Base
from backoffice.db.session import get_db
import backoffice.models  # noqa: F401


# ---------------------------------------------------------
# In-memory collaborators for the resolver
# ---------------------------------------------------------
class FakeIdentity:
    """
    Requests are plain objects; `request.actor` is the authenticated Actor or None.
    """

    def __init__(self):
        self.calls = 0

    async def authenticate(self, request):
        self.calls += 1
        return getattr(request, "actor", None)


class FakeProfiles:
    def __init__(self):
        self.global_roles = {}
        self.calls = 0
        self.error = None

    async def get_global_role(self, actor_id):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.global_roles.get(actor_id)


class FakeMemberships:
    def __init__(self):
        self.rows = {}
        self.calls = 0
        self.error = None

    def add(self, actor_id, team_id, role):
        row = SimpleNamespace(user_id=actor_id, team_id=team_id, role=role)
        self.rows[(actor_id, team_id)] = row
        return row

    async def get_membership(self, actor_id, team_id):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.rows.get((actor_id, team_id))


class Directory(SimpleNamespace):
    def store_calls(self) -> int:
        return self.identity.calls + self.profiles.calls + self.memberships.calls

    def request_for(self, actor):
        return SimpleNamespace(actor=actor)

    def new_actor(self, email=None) -> Actor:
        return Actor(id=uuid.uuid4(), email=email)


@pytest.fixture()
def directory() -> Directory:
    identity = FakeIdentity()
    profiles = FakeProfiles()
    memberships = FakeMemberships()
    resolver = ContextResolver(identity=identity, profiles=profiles, memberships=memberships)
    return Directory(
        identity=identity,
        profiles=profiles,
        memberships=memberships,
        resolver=resolver,
        gate=AuthorizationGate(resolver),
    )


# ---------------------------------------------------------
# Database (in-memory SQLite, fresh per test)
# ---------------------------------------------------------
@pytest_asyncio.fixture()
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


@pytest.fixture()
def sessionmaker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db(sessionmaker):
    """
    Session for test setup ONLY. Commit before calling the API.
    """
    async with sessionmaker() as session:
        yield session


# ---------------------------------------------------------
# FastAPI app + dependency override
# ---------------------------------------------------------
@pytest.fixture()
def app(sessionmaker):
    from backoffice.main import app as fastapi_app

    async def _override_get_db():
        async with sessionmaker() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
    ) as ac:
        yield ac
