"""Tests for middleware — security headers, request IDs, drain refusal.

Learn: All three middlewares are raw ASGI, so besides going through the
app they are driven directly with fake scopes and a recording `send` to
see exactly what reaches the client, websocket handshakes included.
"""

import uuid

import pytest
import structlog
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from bookhub.middleware.drain import WS_GOING_AWAY, DrainMiddleware
from bookhub.middleware.request_id import RequestIdMiddleware
from bookhub.middleware.security import SecurityHeadersMiddleware
from bookhub.realtime.bus import EventBus
from bookhub.server import TransportServer


@pytest.mark.asyncio
async def test_security_headers_on_health(client):
    """Health endpoint returns security headers."""
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"


@pytest.mark.asyncio
async def test_request_id_generated(client):
    """Each request gets a unique X-Request-ID header."""
    r1 = await client.get("/health")
    r2 = await client.get("/health")
    assert "X-Request-ID" in r1.headers
    assert "X-Request-ID" in r2.headers
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_propagated(client):
    """Incoming X-Request-ID is propagated through the response."""
    custom_id = "test-trace-12345"
    r = await client.get("/health", headers={"X-Request-ID": custom_id})
    assert r.headers["X-Request-ID"] == custom_id


@pytest.mark.asyncio
async def test_no_hsts_on_http(client):
    """HSTS header is NOT set on HTTP connections (only HTTPS)."""
    r = await client.get("/health")
    assert "Strict-Transport-Security" not in r.headers


@pytest.mark.asyncio
async def test_graphql_responses_carry_headers(client, tables):
    r = await client.post("/", json={"query": "{ allBooksCount }"})
    assert r.status_code == 200
    assert r.headers["X-Frame-Options"] == "DENY"
    assert "X-Request-ID" in r.headers


# ═══════════════════════════════════════════════════════════
# DrainMiddleware
# ═══════════════════════════════════════════════════════════


class _Recorder:
    def __init__(self):
        self.sent = []
        self.called = False

    async def app(self, scope, receive, send):
        self.called = True

    async def send(self, message):
        self.sent.append(message)


async def _receive():
    return {"type": "websocket.connect"}


@pytest.mark.asyncio
async def test_drain_refuses_websocket_unless_listening():
    transport = TransportServer(EventBus())
    recorder = _Recorder()
    middleware = DrainMiddleware(recorder.app, transport=transport)

    await middleware({"type": "websocket"}, _receive, recorder.send)
    assert recorder.sent == [{"type": "websocket.close", "code": WS_GOING_AWAY}]
    assert not recorder.called

    await transport.start()
    recorder.sent.clear()
    await middleware({"type": "websocket"}, _receive, recorder.send)
    assert recorder.called
    assert recorder.sent == []

    await transport.drain()
    recorder.called = False
    await middleware({"type": "websocket"}, _receive, recorder.send)
    assert recorder.sent == [{"type": "websocket.close", "code": WS_GOING_AWAY}]
    assert not recorder.called


@pytest.mark.asyncio
async def test_drain_passes_http_in_any_state():
    transport = TransportServer(EventBus())
    recorder = _Recorder()
    middleware = DrainMiddleware(recorder.app, transport=transport)

    await transport.drain()
    await middleware({"type": "http"}, _receive, recorder.send)
    assert recorder.called


def test_websocket_refused_before_startup(app):
    """The app only accepts subscription sockets once the lifespan has started."""
    client = TestClient(app)
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/", subprotocols=["graphql-transport-ws"]):
            pass
    assert exc_info.value.code == WS_GOING_AWAY


# ═══════════════════════════════════════════════════════════
# RequestIdMiddleware / SecurityHeadersMiddleware on raw scopes
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_request_id_bound_for_websocket_connections():
    """Everything logged while a socket is open carries its request ID."""
    seen = {}

    async def inner(scope, receive, send):
        seen.update(structlog.contextvars.get_contextvars())
        await send({"type": "websocket.accept", "subprotocol": None})

    recorder = _Recorder()
    scope = {"type": "websocket", "headers": [(b"x-request-id", b"ws-trace-9")]}
    await RequestIdMiddleware(inner)(scope, _receive, recorder.send)

    assert seen["request_id"] == "ws-trace-9"
    assert seen["transport"] == "websocket"
    assert (b"x-request-id", b"ws-trace-9") in recorder.sent[0]["headers"]


@pytest.mark.asyncio
async def test_request_id_generated_for_websocket_without_header():
    seen = {}

    async def inner(scope, receive, send):
        seen.update(structlog.contextvars.get_contextvars())

    await RequestIdMiddleware(inner)({"type": "websocket", "headers": []}, _receive, _Recorder().send)
    assert uuid.UUID(seen["request_id"])


@pytest.mark.asyncio
async def test_security_headers_skip_websockets():
    recorder = _Recorder()
    middleware = SecurityHeadersMiddleware(recorder.app)
    await middleware({"type": "websocket", "headers": []}, _receive, recorder.send)
    assert recorder.called
    assert recorder.sent == []


@pytest.mark.asyncio
async def test_graphql_post_is_not_cached(client, tables):
    r = await client.post("/", json={"query": "{ allBooksCount }"})
    assert r.headers["Cache-Control"] == "no-store"

    r = await client.get("/health")
    assert "Cache-Control" not in r.headers
