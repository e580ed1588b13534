"""Security hardening tests: verify headers, CORS, request correlation."""

import pytest


pytestmark = pytest.mark.asyncio


async def test_x_content_type_options(client):
    resp = await client.get("/api/health")
    assert resp.headers.get("x-content-type-options") == "nosniff"


async def test_x_frame_options(client):
    resp = await client.get("/api/health")
    assert resp.headers.get("x-frame-options") == "DENY"


async def test_referrer_policy(client):
    resp = await client.get("/api/health")
    assert resp.headers.get("referrer-policy") == "strict-origin-when-cross-origin"


async def test_content_security_policy(client):
    resp = await client.get("/api/health")
    csp = resp.headers.get("content-security-policy", "")
    assert "default-src 'self'" in csp
    assert "frame-ancestors 'none'" in csp


async def test_permissions_policy(client):
    resp = await client.get("/api/health")
    pp = resp.headers.get("permissions-policy", "")
    assert "camera=()" in pp
    assert "microphone=()" in pp


async def test_headers_on_csrf_rejection(client):
    resp = await client.post("/api/contact", json={})
    assert resp.status_code == 403
    assert resp.headers.get("x-frame-options") == "DENY"
    assert resp.headers.get("cache-control") == "no-store"


async def test_health_not_cached(client):
    resp = await client.get("/api/health")
    assert resp.headers.get("cache-control") == "no-cache"


async def test_cors_rejects_evil_origin(client):
    resp = await client.options(
        "/api/contact",
        headers={
            "Origin": "https://evil.com",
            "Access-Control-Request-Method": "POST",
        },
    )
    allowed_origin = resp.headers.get("access-control-allow-origin", "")
    assert "evil.com" not in allowed_origin


async def test_cors_allows_csrf_header_for_known_origin(client):
    resp = await client.options(
        "/api/contact",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "x-csrf-token",
        },
    )
    assert resp.status_code == 200
    assert resp.headers.get("access-control-allow-origin") == "http://localhost:3000"


async def test_request_id_generated(client):
    resp = await client.get("/api/health")
    assert len(resp.headers.get("x-request-id", "")) == 32


async def test_request_id_propagated(client):
    resp = await client.get("/api/health", headers={"X-Request-ID": "trace-123"})
    assert resp.headers.get("x-request-id") == "trace-123"
