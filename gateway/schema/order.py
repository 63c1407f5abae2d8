from enum import Enum
from typing import Iterable, List, Optional

import strawberry
from strawberry.types import Info

from ..core_settings import get_settings
from ..documents import OrderDocument, OrderItemDocument, ShippingAddressDocument
from ..errors import (BestEffort, ErrorKind, INVALID_RESPONSE_MESSAGE, IsAuthenticated, Mandatory,
                      graph_error, require_entity)
from ..normalize import items_of, iso_datetime, payload_data, pick, upper_enum
from .common import Pagination, to_pagination, to_payload

@strawberry.enum
class OrderStatus(Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

@strawberry.enum
class PaymentStatus(Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    PAID = "PAID"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"

@strawberry.type
class OrderItem:
    product_id: str
    product_name: Optional[str] = None
    quantity: Optional[int] = None
    price: Optional[float] = None
    seller_id: Optional[str] = None
    subtotal: Optional[float] = None

@strawberry.type
class Address:
    name: Optional[str] = None
    mobile: Optional[str] = None
    email: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None

@strawberry.type
class Order:
    id: strawberry.ID
    order_number: Optional[str]
    customer_id: str
    customer_email: Optional[str]
    seller_id: Optional[str]
    items: List[OrderItem]
    subtotal: Optional[float]
    tax: Optional[float]
    shipping: Optional[float]
    discount: Optional[float]
    coupon_code: Optional[str]
    total: Optional[float]
    order_status: str
    payment_status: Optional[str]
    payment_method: Optional[str]
    shipping_address: Optional[Address]
    notes: Optional[str]
    created_at: Optional[str]
    updated_at: Optional[str]

@strawberry.type
class OrderConnection:
    orders: List[Order]
    pagination: Pagination

@strawberry.type
class CreateOrderResult:
    order: Optional[Order]
    orders: List[Order]
    order_count: int

@strawberry.type
class SellerStats:
    total_revenue: float
    total_orders: int
    pending_orders: int
    completed_orders: int
    processing_orders: int
    completion_rate: float
    avg_order_value: float
    success_rate: float

@strawberry.input
class OrderItemInput:
    product_id: str
    quantity: int
    price: float
    subtotal: float
    product_name: Optional[str] = None
    seller_id: Optional[str] = None

@strawberry.input
class AddressInput:
    street: str
    city: str
    state: str
    zip: str
    country: str
    name: Optional[str] = None
    mobile: Optional[str] = None
    email: Optional[str] = None

@strawberry.input
class CreateOrderInput:
    customer_id: str
    customer_email: str
    items: List[OrderItemInput]
    subtotal: float
    total: float
    payment_method: str
    shipping_address: AddressInput
    tax: Optional[float] = None
    shipping: Optional[float] = None
    discount: Optional[float] = None
    coupon_code: Optional[str] = None
    notes: Optional[str] = None

def to_order_item(doc: OrderItemDocument) -> OrderItem:
    return OrderItem(
        product_id=doc.productId or "",
        product_name=doc.productName,
        quantity=doc.quantity,
        price=doc.price,
        seller_id=doc.sellerId,
        subtotal=doc.subtotal,
    )

def to_address(doc: Optional[ShippingAddressDocument]) -> Optional[Address]:
    if doc is None:
        return None
    return Address(**doc.model_dump())

def to_order(raw: dict) -> Order:
    doc = OrderDocument.model_validate(raw)
    return Order(
        id=doc.id or "",
        order_number=doc.orderNumber or None,
        customer_id=doc.customerId or "",
        customer_email=doc.customerEmail,
        seller_id=doc.sellerId,
        items=[to_order_item(item) for item in doc.items],
        subtotal=doc.subtotal,
        tax=doc.tax,
        shipping=doc.shipping,
        discount=doc.discount,
        coupon_code=doc.couponCode,
        total=doc.total,
        order_status=upper_enum(doc.status_value),
        payment_status=upper_enum(doc.paymentStatus),
        payment_method=doc.paymentMethod,
        shipping_address=to_address(doc.shippingAddress),
        notes=doc.notes,
        created_at=iso_datetime(doc.createdAt),
        updated_at=iso_datetime(doc.updatedAt),
    )

def to_create_order_result(data: dict) -> CreateOrderResult:
    """One checkout may be split into one order per seller; expose both shapes."""
    produced = items_of(data, "orders")
    if not produced and isinstance(data.get("order"), dict):
        produced = [data["order"]]
    if not produced:
        raise graph_error(ErrorKind.UPSTREAM_UNAVAILABLE, INVALID_RESPONSE_MESSAGE, service="order")
    orders = [to_order(raw) for raw in produced]
    return CreateOrderResult(
        order=orders[0] if orders else None,
        orders=orders,
        order_count=len(orders),
    )

PROCESSING_STATUSES = {"CONFIRMED", "PROCESSING", "SHIPPED"}

def _seller_revenue(order: OrderDocument, seller_id: str) -> float:
    own = [item for item in order.items if item.sellerId == seller_id]
    if not own:
        return float(order.total or 0)
    return float(sum(
        item.subtotal if item.subtotal is not None else (item.price or 0) * (item.quantity or 0)
        for item in own
    ))

def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0

def compute_seller_stats(orders: Iterable[OrderDocument], seller_id: str) -> SellerStats:
    """Derive a seller's statistics from their orders.

    Revenue counts only the seller's own line items; an order whose items carry
    no seller id (already split per seller) contributes its total.
    ``completion_rate`` is delivered/total, ``success_rate`` is
    not-cancelled/total, and every ratio is 0 when there are no orders.
    """
    orders = list(orders)
    statuses = [upper_enum(order.status_value) for order in orders]
    total_orders = len(orders)
    total_revenue = sum(_seller_revenue(order, seller_id) for order in orders)
    completed = statuses.count("DELIVERED")
    cancelled = statuses.count("CANCELLED")
    return SellerStats(
        total_revenue=total_revenue,
        total_orders=total_orders,
        pending_orders=statuses.count("PENDING"),
        completed_orders=completed,
        processing_orders=sum(1 for status in statuses if status in PROCESSING_STATUSES),
        completion_rate=_ratio(completed, total_orders),
        avg_order_value=_ratio(total_revenue, total_orders),
        success_rate=_ratio(total_orders - cancelled, total_orders),
    )

def empty_seller_stats(*_, **__) -> SellerStats:
    return compute_seller_stats([], "")

@strawberry.type
class OrderQuery:
    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def orders(self, info: Info, page: Optional[int] = None, limit: Optional[int] = None,
                     customer_id: Optional[str] = None) -> OrderConnection:
        body = await info.context.clients.order.get(
            "/api/orders", context=info.context.request_context,
            params={"page": page, "limit": limit, "customerId": customer_id})
        data = payload_data(body)
        orders = [to_order(raw) for raw in items_of(data, "orders")]
        return OrderConnection(orders=orders, pagination=to_pagination(data.get("pagination"), page, limit, len(orders)))

    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def order(self, info: Info, id: strawberry.ID) -> Optional[Order]:
        body = await info.context.clients.order.get(f"/api/orders/{id}", context=info.context.request_context)
        raw = pick(payload_data(body), "order")
        return to_order(raw) if raw else None

    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def orders_by_customer(self, info: Info, customer_id: str) -> List[Order]:
        body = await info.context.clients.order.get(
            f"/api/orders/customer/{customer_id}", context=info.context.request_context)
        return [to_order(raw) for raw in items_of(payload_data(body), "orders")]

    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[BestEffort(empty_seller_stats)])
    async def seller_stats(self, info: Info, seller_id: str) -> SellerStats:
        body = await info.context.clients.order.get(
            f"/api/orders/seller/{seller_id}", context=info.context.request_context,
            params={"page": 1, "limit": get_settings().DASHBOARD_ORDER_LIMIT})
        orders = [OrderDocument.model_validate(raw) for raw in items_of(payload_data(body), "orders")]
        return compute_seller_stats(orders, seller_id)

@strawberry.type
class OrderMutation:
    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def create_order(self, info: Info, input: CreateOrderInput) -> CreateOrderResult:
        body = await info.context.clients.order.post(
            "/api/orders", to_payload(input), context=info.context.request_context)
        return to_create_order_result(payload_data(body))

    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def update_order_status(self, info: Info, id: strawberry.ID, status: OrderStatus) -> Order:
        body = await info.context.clients.order.patch(
            f"/api/orders/{id}/status", {"orderStatus": status.value.upper()},
            context=info.context.request_context)
        return to_order(require_entity(pick(payload_data(body), "order"), "order"))

    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def update_payment_status(self, info: Info, id: strawberry.ID, status: PaymentStatus) -> Order:
        body = await info.context.clients.order.patch(
            f"/api/orders/{id}/payment", {"paymentStatus": status.value.upper()},
            context=info.context.request_context)
        return to_order(require_entity(pick(payload_data(body), "order"), "order"))

    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def cancel_order(self, info: Info, id: strawberry.ID) -> Order:
        body = await info.context.clients.order.post(
            f"/api/orders/{id}/cancel", {}, context=info.context.request_context)
        return to_order(require_entity(pick(payload_data(body), "order"), "order"))
