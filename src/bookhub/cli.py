"""Bookhub CLI — run the GraphQL server.

Usage:
    bookhub serve                       # listen on BOOKHUB_HOST:BOOKHUB_PORT (4000)
    bookhub serve --port 8080 --debug   # GraphiQL on, SQL echo on
    bookhub init-db                     # create tables without starting the server
"""

from __future__ import annotations

import asyncio
import os
import socket
from typing import Optional

import click
import structlog
import uvicorn

logger = structlog.get_logger()


class DrainingServer(uvicorn.Server):
    """uvicorn server that drains the transport before closing connections.

    Learn: uvicorn's shutdown() waits for open connections to finish before
    the app's lifespan shutdown runs. Live subscriptions never finish on
    their own, so they are disposed first; HTTP requests in flight still
    complete normally.
    """

    def __init__(self, config: uvicorn.Config, transport):
        super().__init__(config)
        self.transport = transport

    async def shutdown(self, sockets: Optional[list[socket.socket]] = None) -> None:
        await self.transport.drain()
        await super().shutdown(sockets=sockets)


@click.group()
def cli():
    """Bookhub — library catalog GraphQL API."""


@cli.command()
@click.option("--host", default=None, help="Bind address (default: BOOKHUB_HOST).")
@click.option("--port", default=None, type=int, help="Port (default: BOOKHUB_PORT).")
@click.option("--debug", is_flag=True, help="Enable GraphiQL and SQL echo.")
def serve(host: Optional[str], port: Optional[int], debug: bool):
    """Serve queries, mutations and subscriptions on one endpoint."""
    if debug:
        os.environ["BOOKHUB_DEBUG"] = "true"

    # Imported late so --debug is visible to settings
    from bookhub.config import settings
    from bookhub.main import app

    config = uvicorn.Config(
        app,
        host=host or settings.host,
        port=port or settings.port,
        lifespan="on",
    )
    server = DrainingServer(config, transport=app.state.transport)
    click.echo(f"Server is now running on http://localhost:{config.port}{settings.graphql_path}")
    server.run()


@cli.command("init-db")
def init_db():
    """Create catalog tables in BOOKHUB_DATABASE_URL."""
    from bookhub.db.engine import engine
    from bookhub.db.models import Base

    async def _create():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await engine.dispose()

    asyncio.run(_create())
    click.echo("Catalog tables created.")


def main():
    cli()


if __name__ == "__main__":
    main()
