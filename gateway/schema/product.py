from typing import List, Optional

import strawberry
from strawberry.types import Info

from ..documents import ProductDocument, UserDocument
from ..errors import IsAuthenticated, Mandatory, require_entity
from ..normalize import items_of, iso_datetime, payload_data, pick
from .common import Pagination, to_pagination, to_payload

@strawberry.type
class Seller:
    id: strawberry.ID
    name: str
    email: Optional[str] = None

@strawberry.type
class Product:
    id: strawberry.ID
    name: str
    description: str
    price: float
    category: str
    stock: int
    image_url: Optional[str]
    seller_id: str
    is_active: bool
    tags: List[str]
    rating: float
    review_count: int
    created_at: Optional[str]
    updated_at: Optional[str]

    @strawberry.field
    async def seller(self, info: Info) -> Optional[Seller]:
        if not self.seller_id:
            return None
        user = await info.context.loaders.sellers.load(self.seller_id)
        return to_seller(user, self.seller_id)

@strawberry.type
class ProductConnection:
    products: List[Product]
    pagination: Pagination

@strawberry.input
class CreateProductInput:
    name: str
    description: str
    price: float
    category: str
    stock: int
    seller_id: str
    image_url: Optional[str] = None
    tags: Optional[List[str]] = None

@strawberry.input
class UpdateProductInput:
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    category: Optional[str] = None
    stock: Optional[int] = None
    image_url: Optional[str] = None
    seller_id: Optional[str] = None
    tags: Optional[List[str]] = None
    is_active: Optional[bool] = None

def to_seller(user: UserDocument, seller_id: str) -> Seller:
    return Seller(id=user.id or seller_id, name=user.name or "Seller", email=user.email)

def to_product(raw: dict) -> Product:
    doc = ProductDocument.model_validate(raw)
    return Product(
        id=doc.id or "",
        name=doc.name or "",
        description=doc.description or "",
        price=doc.price or 0.0,
        category=doc.category or "",
        stock=doc.stock or 0,
        image_url=doc.imageUrl,
        seller_id=doc.sellerId or "",
        is_active=doc.isActive if doc.isActive is not None else True,
        tags=doc.tags or [],
        rating=doc.rating or 0.0,
        review_count=doc.reviewCount or 0,
        created_at=iso_datetime(doc.createdAt),
        updated_at=iso_datetime(doc.updatedAt),
    )

@strawberry.type
class ProductQuery:
    @strawberry.field(extensions=[Mandatory()])
    async def products(
        self,
        info: Info,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        search: Optional[str] = None,
        category: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
        featured: Optional[bool] = None,
        include_inactive: Optional[bool] = None,
    ) -> ProductConnection:
        # Featured listings are the most-reviewed products
        if featured:
            sort_by, sort_order = "reviewCount", "desc"
        body = await info.context.clients.product.get("/api/products", params={
            "page": page,
            "limit": limit,
            "search": search,
            "category": category,
            "minPrice": min_price,
            "maxPrice": max_price,
            "sortBy": sort_by,
            "sortOrder": sort_order,
            "featured": featured,
            "includeInactive": bool(include_inactive),
        })
        data = payload_data(body)
        products = [to_product(raw) for raw in items_of(data, "products")]
        return ProductConnection(
            products=products,
            pagination=to_pagination(data.get("pagination"), page, limit, len(products)),
        )

    @strawberry.field(extensions=[Mandatory()])
    async def product(self, info: Info, id: strawberry.ID) -> Optional[Product]:
        body = await info.context.clients.product.get(f"/api/products/{id}")
        raw = pick(payload_data(body), "product")
        return to_product(raw) if raw else None

    @strawberry.field(extensions=[Mandatory()])
    async def products_by_seller(self, info: Info, seller_id: str) -> List[Product]:
        body = await info.context.clients.product.get(f"/api/products/seller/{seller_id}")
        return [to_product(raw) for raw in items_of(payload_data(body), "products")]

@strawberry.type
class ProductMutation:
    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def create_product(self, info: Info, input: CreateProductInput) -> Product:
        body = await info.context.clients.product.post(
            "/api/products", to_payload(input), context=info.context.request_context)
        return to_product(require_entity(pick(payload_data(body), "product"), "product"))

    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def update_product(self, info: Info, id: strawberry.ID, input: UpdateProductInput) -> Product:
        body = await info.context.clients.product.put(
            f"/api/products/{id}", to_payload(input), context=info.context.request_context)
        return to_product(require_entity(pick(payload_data(body), "product"), "product"))

    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def delete_product(self, info: Info, id: strawberry.ID) -> bool:
        await info.context.clients.product.delete(f"/api/products/{id}", context=info.context.request_context)
        return True
