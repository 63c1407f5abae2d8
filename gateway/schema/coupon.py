from typing import List, Optional

import strawberry
from strawberry.types import Info

from ..documents import CouponDocument
from ..errors import BestEffort, IsAuthenticated, Mandatory, message_of, require_entity
from ..normalize import items_of, iso_datetime, payload_data, pick
from .common import Pagination, to_pagination, to_payload

INVALID_COUPON_MESSAGE = "Invalid coupon code"
APPLIED_COUPON_MESSAGE = "Coupon applied successfully"

@strawberry.type
class Coupon:
    id: strawberry.ID
    code: str
    description: Optional[str]
    discount_type: str
    discount: float
    min_purchase: Optional[float]
    max_discount: Optional[float]
    valid_from: Optional[str]
    valid_to: Optional[str]
    usage_limit: Optional[int]
    usage_count: int
    is_active: bool
    created_at: Optional[str]
    updated_at: Optional[str]

@strawberry.type
class CouponConnection:
    coupons: List[Coupon]
    pagination: Pagination

@strawberry.type
class CouponValidation:
    valid: bool
    discount: float
    discount_value: float
    final_total: float
    discount_type: Optional[str]
    message: Optional[str]
    code: str

@strawberry.input
class CreateCouponInput:
    code: str
    description: str
    discount_type: str
    discount: float
    valid_from: str
    valid_to: str
    min_purchase: Optional[float] = None
    max_discount: Optional[float] = None
    usage_limit: Optional[int] = None

@strawberry.input
class UpdateCouponInput:
    code: Optional[str] = None
    description: Optional[str] = None
    discount_type: Optional[str] = None
    discount: Optional[float] = None
    min_purchase: Optional[float] = None
    max_discount: Optional[float] = None
    valid_from: Optional[str] = None
    valid_to: Optional[str] = None
    usage_limit: Optional[int] = None
    is_active: Optional[bool] = None

def to_coupon(raw: dict) -> Coupon:
    doc = CouponDocument.model_validate(raw)
    return Coupon(
        id=doc.id or "",
        code=doc.code or "",
        description=doc.description,
        discount_type=doc.discountType or "",
        discount=doc.discount or 0.0,
        min_purchase=doc.minPurchase,
        max_discount=doc.maxDiscount,
        valid_from=iso_datetime(doc.validFrom),
        valid_to=iso_datetime(doc.validTo),
        usage_limit=doc.usageLimit,
        usage_count=doc.usageCount or 0,
        is_active=doc.isActive if doc.isActive is not None else True,
        created_at=iso_datetime(doc.createdAt),
        updated_at=iso_datetime(doc.updatedAt),
    )

def rejected_coupon(code: str, order_total: float, message: str) -> CouponValidation:
    return CouponValidation(
        valid=False,
        discount=0.0,
        discount_value=0.0,
        final_total=order_total,
        discount_type=None,
        message=message,
        code=code,
    )

def to_coupon_validation(data: dict, code: str, order_total: float) -> CouponValidation:
    if data.get("valid") is False:
        return rejected_coupon(code, order_total, data.get("message") or INVALID_COUPON_MESSAGE)
    coupon = data.get("coupon") if isinstance(data.get("coupon"), dict) else {}
    discount = float(data.get("discount") or 0)
    final_total = data.get("finalTotal")
    return CouponValidation(
        valid=True,
        discount=discount,
        discount_value=float(coupon.get("discount") or 0),
        final_total=float(final_total) if final_total is not None else order_total - discount,
        discount_type=coupon.get("discountType"),
        message=data.get("message") or APPLIED_COUPON_MESSAGE,
        code=code,
    )

def invalid_coupon(error: Exception, code: str, order_total: float) -> CouponValidation:
    return rejected_coupon(code, order_total, message_of(error, INVALID_COUPON_MESSAGE))

@strawberry.type
class CouponQuery:
    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def coupons(self, info: Info, page: Optional[int] = None, limit: Optional[int] = None,
                      search: Optional[str] = None, is_active: Optional[bool] = None) -> CouponConnection:
        body = await info.context.clients.coupon.get(
            "/api/coupons", context=info.context.request_context,
            params={"page": page, "limit": limit, "search": search, "isActive": is_active})
        data = payload_data(body)
        coupons = [to_coupon(raw) for raw in items_of(data, "coupons")]
        return CouponConnection(coupons=coupons, pagination=to_pagination(data.get("pagination"), page, limit, len(coupons)))

    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def coupon(self, info: Info, id: strawberry.ID) -> Optional[Coupon]:
        body = await info.context.clients.coupon.get(f"/api/coupons/{id}", context=info.context.request_context)
        raw = pick(payload_data(body), "coupon")
        return to_coupon(raw) if raw else None

    # Public: checkout validates before the customer signs in
    @strawberry.field(extensions=[BestEffort(invalid_coupon)])
    async def validate_coupon(self, info: Info, code: str, order_total: float) -> CouponValidation:
        body = await info.context.clients.coupon.post(
            "/api/coupons/validate", {"code": code, "orderTotal": order_total})
        return to_coupon_validation(payload_data(body), code, order_total)

@strawberry.type
class CouponMutation:
    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def create_coupon(self, info: Info, input: CreateCouponInput) -> Coupon:
        body = await info.context.clients.coupon.post(
            "/api/coupons", to_payload(input), context=info.context.request_context)
        return to_coupon(require_entity(pick(payload_data(body), "coupon"), "coupon"))

    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def update_coupon(self, info: Info, id: strawberry.ID, input: UpdateCouponInput) -> Coupon:
        body = await info.context.clients.coupon.put(
            f"/api/coupons/{id}", to_payload(input), context=info.context.request_context)
        return to_coupon(require_entity(pick(payload_data(body), "coupon"), "coupon"))

    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def delete_coupon(self, info: Info, id: strawberry.ID) -> bool:
        await info.context.clients.coupon.delete(f"/api/coupons/{id}", context=info.context.request_context)
        return True
