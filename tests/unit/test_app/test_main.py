"""Tests for the application factory, routing and middleware."""

from httpx import ASGITransport, AsyncClient
import pytest

from s3_admin.app.main import create_app


def test_create_app_mounts_routers() -> None:
    """Health and metrics live at the root, storage under the API prefix."""
    app = create_app()
    paths = {route.path for route in app.routes}

    assert "/health" in paths
    assert "/metrics" in paths
    assert "/api/buckets" in paths
    assert "/api/buckets/{bucket_name}/force" in paths


@pytest.mark.asyncio
async def test_request_id_and_process_time_headers() -> None:
    """Responses carry the request ID (echoed when provided) and timing."""
    app = create_app()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        generated = await client.get("/health")
        echoed = await client.get("/health", headers={"X-Request-ID": "req-abc"})

    assert generated.status_code == 200
    assert generated.headers["X-Request-ID"]
    assert "X-Process-Time" in generated.headers
    assert echoed.headers["X-Request-ID"] == "req-abc"


@pytest.mark.asyncio
async def test_disabled_storage_answers_503_with_request_id() -> None:
    """Bucket endpoints answer 503 problems when storage is disabled."""
    app = create_app()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/api/buckets", headers={"X-Request-ID": "req-503"})

    assert response.status_code == 503
    body = response.json()
    assert body["kind"] == "unavailable"
    assert body["request_id"] == "req-503"


@pytest.mark.asyncio
async def test_metrics_endpoint_counts_requests() -> None:
    """The metrics endpoint exposes HTTP request counters by route template."""
    app = create_app()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        await client.get("/health")
        response = await client.get("/metrics")

    assert response.status_code == 200
    assert 'http_requests_total{method="GET",endpoint="/health",status="200"}' in response.text
