import asyncio

import httpx
import pytest

from gateway.documents import OrderDocument
from gateway.schema.dashboard import count_pending, summarize

from helpers import AUTH, ORDER, TOKEN

QUERY = "{ dashboardStats { totalUsers totalOrders totalRevenue pendingOrders } }"
ZEROS = {"totalUsers": 0, "totalOrders": 0, "totalRevenue": 0.0, "pendingOrders": 0}

ORDERS = {
    "success": True,
    "data": {
        "orders": [
            {"_id": "o1", "total": 100.0, "orderStatus": "pending"},
            {"_id": "o2", "total": 50.5, "orderStatus": "PENDING"},
            {"_id": "o3", "total": 20.0, "orderStatus": "delivered"},
        ],
        "pagination": {"page": 1, "limit": 1000, "total": 3, "pages": 1},
    },
}

def test_pending_count_ignores_case():
    orders = [OrderDocument.model_validate(raw) for raw in ORDERS["data"]["orders"]]
    assert count_pending(orders) == 2

def test_summary_prefers_pagination_total():
    body = {"data": {"orders": [{"_id": "o1", "total": 10}], "pagination": {"total": 42}}}
    stats = summarize(body, {"data": {"totalUsers": 7}})
    assert stats.total_orders == 42
    assert stats.total_users == 7
    assert stats.total_revenue == 10.0

@pytest.mark.asyncio
async def test_dashboard_aggregates_both_services(execute, router):
    orders = router.get(host=ORDER, path="/api/orders").mock(return_value=httpx.Response(200, json=ORDERS))
    router.get(host=AUTH, path="/api/auth/stats").mock(
        return_value=httpx.Response(200, json={"success": True, "data": {"totalUsers": 12}}))

    result = await execute(QUERY, token=TOKEN)

    assert result.errors is None
    assert result.data["dashboardStats"] == {
        "totalUsers": 12,
        "totalOrders": 3,
        "totalRevenue": 170.5,
        "pendingOrders": 2,
    }
    assert orders.calls.last.request.url.params["limit"] == "1000"

@pytest.mark.asyncio
async def test_dashboard_degrades_to_zeros(execute, router):
    router.get(host=ORDER, path="/api/orders").mock(return_value=httpx.Response(500, json={"message": "db down"}))
    router.get(host=AUTH, path="/api/auth/stats").mock(
        return_value=httpx.Response(200, json={"success": True, "data": {"totalUsers": 12}}))

    result = await execute(QUERY, token=TOKEN)

    assert result.errors is None
    assert result.data["dashboardStats"] == {
        "totalUsers": 0,
        "totalOrders": 0,
        "totalRevenue": 0.0,
        "pendingOrders": 0,
    }

@pytest.mark.asyncio
async def test_dashboard_degrades_when_auth_stats_fail(execute, router):
    router.get(host=ORDER, path="/api/orders").mock(return_value=httpx.Response(200, json=ORDERS))
    router.get(host=AUTH, path="/api/auth/stats").mock(return_value=httpx.Response(503, json={"message": "down"}))

    result = await execute(QUERY, token=TOKEN)

    assert result.errors is None
    assert result.data["dashboardStats"] == ZEROS

@pytest.mark.asyncio
async def test_dashboard_degrades_on_malformed_pagination(execute, router):
    body = {"data": {"orders": ORDERS["data"]["orders"], "pagination": "n/a"}}
    router.get(host=ORDER, path="/api/orders").mock(return_value=httpx.Response(200, json=body))
    router.get(host=AUTH, path="/api/auth/stats").mock(
        return_value=httpx.Response(200, json={"success": True, "data": {"totalUsers": 12}}))

    result = await execute(QUERY, token=TOKEN)

    assert result.errors is None
    assert result.data["dashboardStats"] == ZEROS

@pytest.mark.asyncio
async def test_dashboard_degrades_on_malformed_user_count(execute, router):
    router.get(host=ORDER, path="/api/orders").mock(return_value=httpx.Response(200, json=ORDERS))
    router.get(host=AUTH, path="/api/auth/stats").mock(
        return_value=httpx.Response(200, json={"success": True, "data": {"totalUsers": "many"}}))

    result = await execute(QUERY, token=TOKEN)

    assert result.errors is None
    assert result.data["dashboardStats"] == ZEROS

@pytest.mark.asyncio
async def test_dashboard_fetches_run_concurrently(execute, router):
    auth_started = asyncio.Event()

    async def orders_reply(request):
        # Only returns if the auth call is in flight at the same time
        await asyncio.wait_for(auth_started.wait(), timeout=0.5)
        return httpx.Response(200, json=ORDERS)

    async def auth_reply(request):
        auth_started.set()
        return httpx.Response(200, json={"success": True, "data": {"totalUsers": 12}})

    router.get(host=ORDER, path="/api/orders").mock(side_effect=orders_reply)
    router.get(host=AUTH, path="/api/auth/stats").mock(side_effect=auth_reply)

    result = await execute(QUERY, token=TOKEN)

    assert result.errors is None
    assert result.data["dashboardStats"]["totalUsers"] == 12
    assert result.data["dashboardStats"]["totalOrders"] == 3

@pytest.mark.asyncio
async def test_failed_orders_call_cancels_auth_stats(execute, router):
    auth_started = asyncio.Event()
    auth_cancelled = asyncio.Event()

    async def orders_reply(request):
        await asyncio.wait_for(auth_started.wait(), timeout=0.5)
        return httpx.Response(500, json={"message": "db down"})

    async def auth_reply(request):
        auth_started.set()
        try:
            await asyncio.sleep(5)
        except asyncio.CancelledError:
            auth_cancelled.set()
            raise
        return httpx.Response(200, json={"success": True, "data": {"totalUsers": 12}})

    router.get(host=ORDER, path="/api/orders").mock(side_effect=orders_reply)
    router.get(host=AUTH, path="/api/auth/stats").mock(side_effect=auth_reply)

    result = await execute(QUERY, token=TOKEN)

    assert result.errors is None
    assert result.data["dashboardStats"] == ZEROS
    await asyncio.wait_for(auth_cancelled.wait(), timeout=1)
