"""Health check endpoint.

Learn: Simple GET endpoint that reports whether the transport is
listening, how many subscriptions are live, and whether the database
is reachable.
"""

from fastapi import APIRouter, Request
from sqlalchemy import text

from bookhub import __version__

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Check server health and dependency connectivity."""
    transport = request.app.state.transport
    checks = {"server": "ok", "version": __version__}

    try:
        async with transport.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    status = "healthy" if checks["database"] == "ok" else "degraded"

    return {
        "status": status,
        "transport": transport.state.value,
        "subscriptions": transport.subscriptions.active_count,
        **checks,
    }
