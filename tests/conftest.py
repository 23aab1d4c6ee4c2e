"""Test fixtures — fresh in-memory catalog per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI + Strawberry:

1. BOOKHUB_DATABASE_URL points at in-memory SQLite before bookhub is
   imported, so the app's engine (StaticPool, one shared connection)
   is the test database.
2. Each test creates all tables and drops them afterwards.
3. The app is built with create_app(bus=...) so tests hold the same
   EventBus the resolvers publish to.

No Postgres, no running server — httpx talks to the ASGI app in-process.
"""

import os

os.environ.setdefault("BOOKHUB_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BOOKHUB_JWT_SECRET", "test-secret")
os.environ.setdefault("BOOKHUB_CREATE_SCHEMA_ON_STARTUP", "false")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from bookhub.auth.context import AuthContext
from bookhub.auth.jwt import create_access_token
from bookhub.db.engine import build_session_factory, engine
from bookhub.db.models import Base
from bookhub.main import create_app
from bookhub.realtime.bus import EventBus
from bookhub.services.catalog_service import CatalogOperations


@pytest_asyncio.fixture()
async def tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture()
async def db_session(tables):
    async with build_session_factory(engine)() as session:
        yield session


@pytest.fixture()
def bus():
    return EventBus(max_pending=10)


@pytest.fixture()
def app(bus):
    return create_app(bus=bus)


@pytest_asyncio.fixture()
async def client(app, tables):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def graphql(client):
    """POST a GraphQL document, optionally with a bearer token. Returns (status, body)."""

    async def _post(query: str, token: str | None = None, **variables):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        r = await client.post(
            "/", json={"query": query, "variables": variables}, headers=headers
        )
        return r.status_code, r.json()

    return _post


@pytest_asyncio.fixture()
async def alice(db_session, bus):
    """A persisted user 'alice' who likes fantasy."""
    ops = CatalogOperations(db_session, bus)
    return await ops.create_user("alice", "fantasy")


@pytest.fixture()
def alice_token(alice):
    return create_access_token(alice.username, alice.id)


@pytest.fixture()
def anonymous_ops(db_session, bus):
    return CatalogOperations(db_session, bus)


@pytest.fixture()
def alice_ops(db_session, bus, alice):
    return CatalogOperations(db_session, bus, AuthContext(current_user=alice))
