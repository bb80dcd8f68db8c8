import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from horizonrelay.app import create_app
from horizonrelay.config import get_settings


@pytest.fixture
def app(settings):
    app = create_app()
    app.dependency_overrides[get_settings] = lambda: settings
    return app


@pytest.mark.asyncio
async def test_health_endpoint(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert "version" in data
        assert data["upstream_reachable"] is False
        assert data["upstream_configured"] is True
        assert "X-Horizon-Latency-Ms" in resp.headers


@pytest.mark.asyncio
async def test_health_checks_upstream(app, upstream):
    app.state.http_client = upstream.client()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/health")
    await app.state.http_client.aclose()

    assert resp.json()["upstream_reachable"] is True
    sent = upstream.requests[0]
    assert sent.method == "GET"
    assert str(sent.url) == "http://test-upstream/v1/chat/completions"
    assert sent.headers["Authorization"] == "Bearer test-key"


@pytest.mark.asyncio
async def test_health_upstream_unreachable(app, upstream):
    upstream.connect_error = httpx.ConnectError("connection refused")
    app.state.http_client = upstream.client()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/health")
    await app.state.http_client.aclose()

    assert resp.status_code == 200
    assert resp.json()["upstream_reachable"] is False


@pytest.mark.asyncio
async def test_health_upstream_server_error(app, upstream):
    upstream.status_code = 503
    app.state.http_client = upstream.client()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/health")
    await app.state.http_client.aclose()

    assert resp.json()["upstream_reachable"] is False


@pytest.mark.asyncio
async def test_status_endpoint(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/status")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["message"] == "Horizon API is running"
        assert data["timestamp"]


@pytest.mark.asyncio
async def test_public_config_endpoint(app, settings):
    settings.api_url = "https://api.example.test"
    settings.environment = "staging"
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/config")
        assert resp.status_code == 200
        assert resp.json() == {"apiUrl": "https://api.example.test", "environment": "staging"}
        assert resp.headers["Cache-Control"] == "no-cache, no-store, must-revalidate"
