"""Drain middleware — refuse new websocket connections while shutting down.

Learn: BaseHTTPMiddleware only sees HTTP requests, so this is a raw ASGI
middleware. For websocket scopes it asks the TransportServer whether new
connections are still accepted; if not, it closes the handshake with
1001 (going away). HTTP traffic always passes through untouched.
"""

import structlog
from starlette.types import ASGIApp, Receive, Scope, Send

logger = structlog.get_logger()

WS_GOING_AWAY = 1001


class DrainMiddleware:
    def __init__(self, app: ASGIApp, transport):
        self.app = app
        self.transport = transport

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "websocket" and not self.transport.accepting_connections:
            logger.info("bookhub.transport.ws_refused", state=self.transport.state.value)
            await send({"type": "websocket.close", "code": WS_GOING_AWAY})
            return
        await self.app(scope, receive, send)
