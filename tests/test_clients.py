import httpx
import pytest

from gateway.clients import UpstreamError
from gateway.context import RequestContext

from helpers import AUTH, ORDER, PRODUCT, TOKEN

@pytest.mark.asyncio
async def test_bearer_token_is_forwarded(clients, router):
    route = router.get(host=ORDER, path="/api/orders").mock(
        return_value=httpx.Response(200, json={"success": True, "data": {"orders": []}}))

    body = await clients.order.get("/api/orders", context=RequestContext(token=TOKEN))

    assert body["success"] is True
    assert route.calls.last.request.headers["Authorization"] == f"Bearer {TOKEN}"

@pytest.mark.asyncio
async def test_no_authorization_header_without_token(clients, router):
    route = router.get(host=PRODUCT, path="/api/products").mock(return_value=httpx.Response(200, json={}))

    await clients.product.get("/api/products", context=RequestContext())

    assert "Authorization" not in route.calls.last.request.headers

@pytest.mark.asyncio
async def test_none_params_are_dropped(clients, router):
    route = router.get(host=PRODUCT, path="/api/products").mock(return_value=httpx.Response(200, json={}))

    await clients.product.get("/api/products", params={"page": 2, "search": None})

    assert dict(route.calls.last.request.url.params) == {"page": "2"}

@pytest.mark.asyncio
async def test_client_error_keeps_downstream_message(clients, router):
    router.post(host=AUTH, path="/api/auth/login").mock(
        return_value=httpx.Response(401, json={"success": False, "message": "Invalid credentials"}))

    with pytest.raises(UpstreamError) as excinfo:
        await clients.auth.post("/api/auth/login", {"email": "a@b.c", "password": "x"})

    assert excinfo.value.status_code == 401
    assert excinfo.value.message == "Invalid credentials"
    assert excinfo.value.service == "auth"
    assert excinfo.value.is_client_error

@pytest.mark.asyncio
async def test_server_error_is_unavailable(clients, router):
    router.get(host=ORDER, path="/api/orders").mock(return_value=httpx.Response(503, text="down"))

    with pytest.raises(UpstreamError) as excinfo:
        await clients.order.get("/api/orders")

    assert excinfo.value.status_code == 503
    assert excinfo.value.is_unavailable

@pytest.mark.asyncio
async def test_timeout_has_no_status(clients, router):
    router.get(host=ORDER, path="/api/orders").mock(side_effect=httpx.ConnectTimeout("slow"))

    with pytest.raises(UpstreamError) as excinfo:
        await clients.order.get("/api/orders")

    assert excinfo.value.status_code is None
    assert excinfo.value.is_unavailable
    assert "timed out" in excinfo.value.message

@pytest.mark.asyncio
async def test_connection_failure_has_no_status(clients, router):
    router.get(host=ORDER, path="/api/orders").mock(side_effect=httpx.ConnectError("refused"))

    with pytest.raises(UpstreamError) as excinfo:
        await clients.order.get("/api/orders")

    assert excinfo.value.status_code is None

@pytest.mark.asyncio
async def test_empty_response_is_none(clients, router):
    router.delete(host=PRODUCT, path="/api/products/p1").mock(return_value=httpx.Response(204))

    assert await clients.product.delete("/api/products/p1") is None

@pytest.mark.asyncio
async def test_non_json_success_is_an_error(clients, router):
    router.get(host=PRODUCT, path="/api/products").mock(return_value=httpx.Response(200, text="<html>"))

    with pytest.raises(UpstreamError) as excinfo:
        await clients.product.get("/api/products")

    assert excinfo.value.status_code == 200

def test_clients_are_built_for_every_service(clients):
    assert [client.name for client in clients] == ["auth", "product", "order", "category", "coupon"]
    assert clients.order.base_url == f"http://{ORDER}"
