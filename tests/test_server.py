"""TransportServer lifecycle tests."""

import pytest
from sqlalchemy import inspect

from bookhub.db.engine import build_engine
from bookhub.realtime.bus import BusClosedError, EventBus
from bookhub.server import ServerState, TransportServer


@pytest.mark.asyncio
async def test_lifecycle_walks_every_state():
    transport = TransportServer(EventBus())
    assert transport.state == ServerState.INITIALIZING
    assert not transport.accepting_connections

    await transport.start()
    assert transport.state == ServerState.LISTENING
    assert transport.accepting_connections

    await transport.drain()
    assert transport.state == ServerState.DRAINING
    assert not transport.accepting_connections

    await transport.stop()
    assert transport.state == ServerState.STOPPED


@pytest.mark.asyncio
async def test_start_twice_is_rejected():
    transport = TransportServer(EventBus())
    await transport.start()
    with pytest.raises(RuntimeError):
        await transport.start()


@pytest.mark.asyncio
async def test_drain_is_idempotent_and_closes_bus():
    bus = EventBus()
    transport = TransportServer(bus)
    await transport.start()
    transport.subscriptions.open("BOOK_ADDED")

    assert await transport.drain() == 1
    assert await transport.drain() == 0
    with pytest.raises(BusClosedError):
        bus.subscribe("BOOK_ADDED")


@pytest.mark.asyncio
async def test_stop_without_start_still_stops():
    transport = TransportServer(EventBus())
    await transport.stop()
    assert transport.state == ServerState.STOPPED


@pytest.mark.asyncio
async def test_start_creates_schema_when_asked():
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    transport = TransportServer(EventBus(), engine=engine, create_schema=True)
    await transport.start()

    async with engine.connect() as conn:
        tables = await conn.run_sync(lambda sync: inspect(sync).get_table_names())
    assert {"authors", "books", "book_genres", "users"} <= set(tables)

    await transport.stop()
