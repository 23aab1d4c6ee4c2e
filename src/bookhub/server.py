"""Transport server — lifecycle of the GraphQL endpoint.

Learn: One object owns everything that outlives a request: the event bus,
the subscription manager and the DB engine. It walks a fixed state machine:

    INITIALIZING → STARTING → LISTENING → DRAINING → STOPPED

Draining stops new websocket connections (DrainMiddleware checks
`accepting_connections`) and disposes every live subscription, so
long-lived sockets don't hold shutdown open. Plain HTTP requests already
in flight are left alone to finish.
"""

from enum import Enum
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from bookhub.db.engine import build_session_factory
from bookhub.db.models import Base
from bookhub.realtime.bus import EventBus
from bookhub.realtime.subscriptions import SubscriptionManager

logger = structlog.get_logger()


class ServerState(str, Enum):
    INITIALIZING = "initializing"
    STARTING = "starting"
    LISTENING = "listening"
    DRAINING = "draining"
    STOPPED = "stopped"


class TransportServer:
    """Owns the shared bus, live subscriptions and engine for one app.

    `session_factory` is how resolvers reach the database: each call opens
    and closes its own session, so no connection outlives one operation.
    """

    def __init__(
        self,
        bus: EventBus,
        engine: Optional[AsyncEngine] = None,
        create_schema: bool = False,
    ):
        self.bus = bus
        self.subscriptions = SubscriptionManager(bus)
        self.engine = engine
        self.session_factory: Optional[async_sessionmaker[AsyncSession]] = (
            build_session_factory(engine) if engine is not None else None
        )
        self.create_schema = create_schema
        self.state = ServerState.INITIALIZING

    @property
    def accepting_connections(self) -> bool:
        return self.state == ServerState.LISTENING

    def _transition(self, state: ServerState) -> None:
        logger.info("bookhub.transport.state", previous=self.state.value, state=state.value)
        self.state = state

    async def start(self) -> None:
        if self.state != ServerState.INITIALIZING:
            raise RuntimeError(f"Cannot start transport in state {self.state.value}")
        self._transition(ServerState.STARTING)

        if self.create_schema and self.engine is not None:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

        self._transition(ServerState.LISTENING)

    async def drain(self) -> int:
        """Refuse new subscriptions and dispose live ones. Safe to call twice."""
        if self.state in (ServerState.DRAINING, ServerState.STOPPED):
            return 0
        self._transition(ServerState.DRAINING)

        disposed = self.subscriptions.dispose_all()
        self.bus.close()
        logger.info("bookhub.transport.drained", subscriptions=disposed)
        return disposed

    async def stop(self) -> None:
        await self.drain()
        if self.engine is not None:
            await self.engine.dispose()
        self._transition(ServerState.STOPPED)
