"""Response documents of the downstream services.

Each model describes one service's JSON shape loosely (unknown keys are
ignored, most keys optional) so parsing never rejects a payload the graph can
still answer. The ``_id``/``id`` split is resolved here: after validation a
document only has ``id``.
"""
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, model_validator

from .normalize import entity_id

class Document(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _unify_id(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            raw = data.pop("_id", None)
            if raw is None:
                raw = data.get("id")
            data["id"] = entity_id(raw)
        return data

class UserDocument(Document):
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    isActive: Optional[bool] = None
    emailVerified: Optional[bool] = None
    profilePicture: Optional[str] = None
    createdAt: Any = None
    lastLogin: Any = None

class ProductDocument(Document):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    category: Optional[str] = None
    stock: Optional[int] = None
    imageUrl: Optional[str] = None
    sellerId: Optional[str] = None
    isActive: Optional[bool] = None
    tags: Optional[List[str]] = None
    rating: Optional[float] = None
    reviewCount: Optional[int] = None
    createdAt: Any = None
    updatedAt: Any = None

class ShippingAddressDocument(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    name: Optional[str] = None
    mobile: Optional[str] = None
    email: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None

class OrderItemDocument(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    productId: Optional[str] = None
    productName: Optional[str] = None
    quantity: Optional[int] = None
    price: Optional[float] = None
    sellerId: Optional[str] = None
    subtotal: Optional[float] = None

class OrderDocument(Document):
    orderNumber: Optional[str] = None
    customerId: Optional[str] = None
    customerEmail: Optional[str] = None
    sellerId: Optional[str] = None
    items: List[OrderItemDocument] = []
    subtotal: Optional[float] = None
    tax: Optional[float] = None
    shipping: Optional[float] = None
    discount: Optional[float] = None
    couponCode: Optional[str] = None
    total: Optional[float] = None
    orderStatus: Optional[str] = None
    status: Optional[str] = None
    paymentStatus: Optional[str] = None
    paymentMethod: Optional[str] = None
    shippingAddress: Optional[ShippingAddressDocument] = None
    notes: Optional[str] = None
    createdAt: Any = None
    updatedAt: Any = None

    @model_validator(mode="before")
    @classmethod
    def _drop_null_items(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("items") is None:
            data = dict(data)
            data["items"] = []
        return data

    @property
    def status_value(self) -> Optional[str]:
        return self.orderStatus or self.status

class CouponDocument(Document):
    code: Optional[str] = None
    description: Optional[str] = None
    discountType: Optional[str] = None
    discount: Optional[float] = None
    minPurchase: Optional[float] = None
    maxDiscount: Optional[float] = None
    validFrom: Any = None
    validTo: Any = None
    usageLimit: Optional[int] = None
    usageCount: Optional[int] = None
    isActive: Optional[bool] = None
    createdAt: Any = None
    updatedAt: Any = None

class CategoryDocument(Document):
    name: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    slug: Optional[str] = None
    isActive: Optional[bool] = None
    productCount: Optional[int] = None
    createdAt: Any = None
    updatedAt: Any = None

class ReviewDocument(Document):
    productId: Optional[str] = None
    userId: Optional[str] = None
    userName: Optional[str] = None
    rating: Optional[int] = None
    comment: Optional[str] = None
    helpful: Optional[int] = None
    isApproved: Optional[bool] = None
    createdAt: Any = None
    updatedAt: Any = None

class AddressDocument(Document):
    userId: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None
    isDefault: Optional[bool] = None
    label: Optional[str] = None
    createdAt: Any = None
    updatedAt: Any = None

class PaginationDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    page: Optional[int] = None
    limit: Optional[int] = None
    total: Optional[int] = None
    pages: Optional[int] = None

class OrderPageDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    orders: Optional[List[OrderDocument]] = None
    pagination: Optional[PaginationDocument] = None

class AuthStatsDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    totalUsers: Optional[int] = None
