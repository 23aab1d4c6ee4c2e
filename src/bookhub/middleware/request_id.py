"""Request ID middleware — one ID per request or websocket connection.

Learn: BaseHTTPMiddleware never sees websocket scopes, and the catalog's
busiest log traffic (subscriptions opened/disposed, bus overflow) happens
on websockets. So this is raw ASGI, like DrainMiddleware.

The ID comes from the incoming X-Request-ID header or is generated, is
bound into structlog's contextvars for everything the connection logs
(tasks spawned per subscription copy the context), and is echoed on the
HTTP response or the websocket accept.
"""

import uuid

import structlog
from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

REQUEST_ID_HEADER = "X-Request-ID"

# Messages that carry the headers the client sees
_HEADER_MESSAGES = ("http.response.start", "websocket.accept")


class RequestIdMiddleware:
    """Generate and propagate a unique request ID."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        request_id = Headers(scope=scope).get(REQUEST_ID_HEADER) or str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, transport=scope["type"])

        async def send_with_request_id(message: Message) -> None:
            if message["type"] in _HEADER_MESSAGES:
                message.setdefault("headers", [])
                MutableHeaders(scope=message).append(REQUEST_ID_HEADER, request_id)
            await send(message)

        await self.app(scope, receive, send_with_request_id)
