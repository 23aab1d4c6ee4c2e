"""Per-request GraphQL context.

Learn: The context getter is a FastAPI dependency. It runs for every HTTP
request and once per websocket connection, and it is where the
AuthContextResolver plugs in, before any resolver executes.

The context holds no database session. Identity is resolved in a session
that is closed before the getter returns, and each resolver opens its own
through `catalog()`. A websocket context can live for hours and carry many
operations at once, so anything session-shaped on it would pin a pooled
connection and mix unrelated transactions.

A bad token fails the whole request here. Over HTTP the app's exception
handler turns AuthenticationError into a 401; over websocket the upgrade
is refused with a policy-violation close.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import WebSocketException, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.requests import HTTPConnection
from strawberry.fastapi import BaseContext

from bookhub.auth.context import AuthContext, AuthContextResolver
from bookhub.db.catalog import CatalogStore
from bookhub.errors import AuthenticationError
from bookhub.realtime.bus import EventBus
from bookhub.realtime.subscriptions import SubscriptionManager
from bookhub.services.catalog_service import CatalogOperations


class CatalogContext(BaseContext):
    """What every resolver sees as info.context."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        bus: EventBus,
        auth: AuthContext,
        subscriptions: SubscriptionManager,
    ):
        super().__init__()
        self.session_factory = session_factory
        self.bus = bus
        self.auth = auth
        self.subscriptions = subscriptions

    @asynccontextmanager
    async def catalog(self) -> AsyncIterator[CatalogOperations]:
        """CatalogOperations on a fresh session, closed when the block exits."""
        async with self.session_factory() as db:
            yield CatalogOperations(db, self.bus, self.auth)


async def resolve_auth(
    session_factory: async_sessionmaker[AsyncSession], authorization: str | None
) -> AuthContext:
    """Resolve the caller in a short-lived session; the user comes back detached."""
    async with session_factory() as db:
        return await AuthContextResolver(CatalogStore(db)).resolve(authorization)


async def get_context(connection: HTTPConnection) -> CatalogContext:
    transport = connection.app.state.transport

    try:
        auth = await resolve_auth(
            transport.session_factory, connection.headers.get("authorization")
        )
    except AuthenticationError as e:
        if connection.scope["type"] == "websocket":
            raise WebSocketException(
                code=status.WS_1008_POLICY_VIOLATION, reason=e.message
            )
        raise

    return CatalogContext(
        session_factory=transport.session_factory,
        bus=transport.bus,
        auth=auth,
        subscriptions=transport.subscriptions,
    )
