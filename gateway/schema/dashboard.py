"""Admin dashboard aggregate: orders from the order service, user count from auth."""
import asyncio
from typing import Any, Awaitable, Iterable, List

import strawberry
from strawberry.types import Info

from ..core_settings import get_settings
from ..documents import AuthStatsDocument, OrderDocument, OrderPageDocument
from ..errors import BestEffort
from ..normalize import payload_data

@strawberry.type
class DashboardStats:
    total_users: int
    total_orders: int
    total_revenue: float
    pending_orders: int

def empty_dashboard_stats(*_, **__) -> DashboardStats:
    return DashboardStats(total_users=0, total_orders=0, total_revenue=0.0, pending_orders=0)

def count_pending(orders: Iterable[OrderDocument]) -> int:
    return sum(1 for order in orders if (order.status_value or "").strip().upper() == "PENDING")

def summarize(orders_body, auth_body) -> DashboardStats:
    """Build the stats; a malformed body raises ``ValidationError``."""
    page = OrderPageDocument.model_validate(payload_data(orders_body))
    stats = AuthStatsDocument.model_validate(payload_data(auth_body))
    orders = page.orders or []
    total = page.pagination.total if page.pagination else None
    return DashboardStats(
        total_users=stats.totalUsers or 0,
        total_orders=total or len(orders),
        total_revenue=float(sum(order.total or 0 for order in orders)),
        pending_orders=count_pending(orders),
    )

async def gather_or_cancel(*calls: Awaitable[Any]) -> List[Any]:
    """Run ``calls`` concurrently; the first failure cancels the ones still running."""
    tasks = [asyncio.ensure_future(call) for call in calls]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        raise

@strawberry.type
class DashboardQuery:
    @strawberry.field(extensions=[BestEffort(empty_dashboard_stats)])
    async def dashboard_stats(self, info: Info) -> DashboardStats:
        clients = info.context.clients
        request_context = info.context.request_context
        limit = get_settings().DASHBOARD_ORDER_LIMIT
        orders_body, auth_body = await gather_or_cancel(
            clients.order.get("/api/orders", context=request_context, params={"page": 1, "limit": limit}),
            clients.auth.get("/api/auth/stats", context=request_context),
        )
        return summarize(orders_body, auth_body)
