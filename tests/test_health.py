"""Health endpoint tests."""

import pytest


@pytest.mark.asyncio
async def test_health_returns_ok(client):
    """Health endpoint should return server status, version and transport state."""
    resp = await client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["server"] == "ok"
    assert data["database"] == "ok"
    assert data["status"] == "healthy"
    assert "version" in data


@pytest.mark.asyncio
async def test_health_reports_transport(client, app):
    """Without a lifespan run the transport is still initializing."""
    data = (await client.get("/health")).json()
    assert data["transport"] == "initializing"
    assert data["subscriptions"] == 0

    await app.state.transport.start()
    data = (await client.get("/health")).json()
    assert data["transport"] == "listening"
