"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan drives the TransportServer through startup and
shutdown. Middleware, CORS, the health route and the GraphQL router
(HTTP + websocket on one path) are all registered here.

The EventBus is built here, once, and handed to the TransportServer;
resolvers reach it through the request context, never through a global.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from bookhub import __version__
from bookhub.api import api_router
from bookhub.config import settings
from bookhub.db.engine import engine
from bookhub.errors import AuthenticationError
from bookhub.graphql.schema import build_graphql_router
from bookhub.realtime.bus import EventBus
from bookhub.server import TransportServer

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown. stop() drains first, so it is harmless if the server
    already drained on its own signal handling.
    """
    transport: TransportServer = app.state.transport
    logger.info(
        "bookhub.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        graphql_path=settings.graphql_path,
    )
    await transport.start()

    yield

    logger.info("bookhub.shutdown")
    await transport.stop()


async def authentication_error_handler(request: Request, exc: AuthenticationError):
    """A rejected token fails the whole request, shaped like a GraphQL error."""
    logger.warning("bookhub.auth.rejected", reason=exc.message)
    return JSONResponse(
        status_code=401,
        content={"data": None, "errors": [{"message": exc.message, "extensions": exc.extensions}]},
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_app(
    bus: Optional[EventBus] = None,
    db_engine: Optional[AsyncEngine] = None,
    create_schema: Optional[bool] = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    Defaults come from settings: the process engine, and schema creation
    per BOOKHUB_CREATE_SCHEMA_ON_STARTUP.
    """
    transport = TransportServer(
        bus or EventBus(max_pending=settings.subscriber_queue_size),
        engine=db_engine if db_engine is not None else engine,
        create_schema=(
            settings.create_schema_on_startup if create_schema is None else create_schema
        ),
    )

    app = FastAPI(
        title="Bookhub",
        description="Library catalog GraphQL API — authors, books, users, live bookAdded feed",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.transport = transport

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: Drain → RequestId → Security → CORS → handler

    from bookhub.middleware.drain import DrainMiddleware
    from bookhub.middleware.request_id import RequestIdMiddleware
    from bookhub.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(DrainMiddleware, transport=transport)

    app.add_exception_handler(AuthenticationError, authentication_error_handler)

    app.include_router(api_router)
    app.include_router(build_graphql_router())

    return app


# Default app instance (used by uvicorn: bookhub.main:app)
app = create_app()
