import logging

import httpx
import pytest
from fastapi.testclient import TestClient

from gateway.main import create_app
from shared.core.logging_config import PerformanceFilter

from helpers import AUTH, CATEGORY, COUPON, ORDER, PRODUCT, TOKEN

@pytest.fixture
def client(settings, router):
    with TestClient(create_app(settings)) as test_client:
        yield test_client

def test_landing_document(client):
    resp = client.get("/")
    assert resp.status_code == 200
    body = resp.json()
    assert body["graphql"] == "/graphql"
    assert body["health"] == "/health"

def test_security_and_request_id_headers(client):
    resp = client.get("/health", headers={"X-Request-ID": "req-1"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "pass"
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert resp.headers["X-Frame-Options"] == "DENY"
    assert resp.headers["X-Request-ID"] == "req-1"

def test_metrics(client):
    body = client.get("/metrics").json()
    assert body["service"] == "graphql-gateway"
    assert body["system"]["memory_rss_bytes"] > 0

def test_readiness_fails_when_a_service_is_down(client, router):
    for host in (AUTH, PRODUCT, ORDER, CATEGORY):
        router.get(host=host, path="/health").mock(return_value=httpx.Response(200, json={"status": "ok"}))
    router.get(host=COUPON, path="/health").mock(side_effect=httpx.ConnectError("refused"))

    resp = client.get("/health/ready")

    assert resp.status_code == 503
    checks = resp.json()["checks"]
    assert checks["coupon:connectivity"]["status"] == "fail"
    assert checks["auth:connectivity"]["status"] == "pass"

def test_startup_probe_checks_configuration(client):
    resp = client.get("/health/startup")
    assert resp.status_code == 200
    assert resp.json()["status"] == "started"

def test_graphql_endpoint_forwards_the_bearer_token(client, router):
    route = router.get(host=AUTH, path="/api/auth/me").mock(return_value=httpx.Response(200, json={
        "success": True, "data": {"user": {"_id": "u1", "email": "ada@example.com", "name": "Ada"}}}))

    resp = client.post("/graphql", json={"query": "{ me { id name } }"},
                       headers={"Authorization": f"Bearer {TOKEN}"})

    assert resp.status_code == 200
    assert resp.json() == {"data": {"me": {"id": "u1", "name": "Ada"}}}
    assert route.calls.last.request.headers["Authorization"] == f"Bearer {TOKEN}"

def test_graphql_endpoint_rejects_gated_operation_without_token(client, router):
    route = router.get(host=ORDER, path="/api/orders").mock(return_value=httpx.Response(200, json={}))

    resp = client.post("/graphql", json={"query": "{ orders { orders { id } } }"})

    body = resp.json()
    assert body["errors"][0]["extensions"]["code"] == "UNAUTHENTICATED"
    assert route.call_count == 0

def test_cors_preflight_allows_configured_origin(client):
    resp = client.options("/graphql", headers={
        "Origin": "http://localhost:3000",
        "Access-Control-Request-Method": "POST",
    })
    assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert resp.headers["access-control-allow-credentials"] == "true"

def test_request_log_carries_duration(client, caplog):
    caplog.set_level(logging.INFO)

    client.get("/")

    completed = [r for r in caplog.records if r.getMessage() == "Request completed: GET /"]
    assert len(completed) == 1
    record = completed[0]
    assert record.extra_fields["status_code"] == 200
    PerformanceFilter().filter(record)
    assert record.duration_ms == record.duration * 1000
    assert record.duration_ms >= 0

def test_graphiql_is_served_when_enabled(settings, router):
    enabled = settings.model_copy(update={"GRAPHIQL": True})
    with TestClient(create_app(enabled)) as test_client:
        resp = test_client.get("/graphql", headers={"Accept": "text/html"})
    assert resp.status_code == 200
    assert "graphiql" in resp.text.lower()

def test_graphiql_is_not_served_when_disabled(client):
    resp = client.get("/graphql", headers={"Accept": "text/html"})
    assert "graphiql" not in resp.text.lower()
