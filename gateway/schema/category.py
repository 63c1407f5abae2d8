from typing import List, Optional

import strawberry
from strawberry.types import Info

from ..documents import CategoryDocument
from ..errors import BestEffort, IsAuthenticated, Mandatory
from ..normalize import items_of, iso_datetime, payload_data, pick
from .common import to_payload

@strawberry.type
class Category:
    id: strawberry.ID
    name: str
    description: Optional[str]
    icon: Optional[str]
    slug: str
    is_active: bool
    product_count: int
    created_at: Optional[str]
    updated_at: Optional[str]

@strawberry.type
class CategoryResponse:
    success: bool
    message: Optional[str]
    data: Optional[Category]

@strawberry.type
class CategoriesResponse:
    success: bool
    message: Optional[str]
    data: List[Category]
    count: int

@strawberry.input
class CategoryInput:
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None

@strawberry.input
class CategoryFilterInput:
    is_active: Optional[bool] = None
    search: Optional[str] = None

def to_category(raw: dict) -> Category:
    doc = CategoryDocument.model_validate(raw)
    return Category(
        id=doc.id or "",
        name=doc.name or "",
        description=doc.description,
        icon=doc.icon,
        slug=doc.slug or "",
        is_active=doc.isActive if doc.isActive is not None else True,
        product_count=doc.productCount or 0,
        created_at=iso_datetime(doc.createdAt),
        updated_at=iso_datetime(doc.updatedAt),
    )

def to_category_response(body) -> CategoryResponse:
    body = body if isinstance(body, dict) else {}
    raw = pick(payload_data(body), "category") if isinstance(body.get("data"), dict) else None
    return CategoryResponse(
        success=bool(body.get("success", True)),
        message=body.get("message"),
        data=to_category(raw) if raw else None,
    )

def no_categories(*_, **__) -> CategoriesResponse:
    return CategoriesResponse(success=False, message="Failed to fetch categories", data=[], count=0)

def no_category(*_, **__) -> Optional[Category]:
    return None

@strawberry.type
class CategoryQuery:
    @strawberry.field(extensions=[BestEffort(no_categories)])
    async def categories(self, info: Info, filter: Optional[CategoryFilterInput] = None) -> CategoriesResponse:
        params = {}
        if filter is not None:
            params = {"search": filter.search or None, "isActive": filter.is_active}
        body = await info.context.clients.category.get("/api/categories", params=params)
        data = payload_data(body)
        categories = [to_category(raw) for raw in items_of(data, "categories")]
        return CategoriesResponse(
            success=bool(body.get("success", True)) if isinstance(body, dict) else True,
            message=(body.get("message") if isinstance(body, dict) else None) or "Categories fetched successfully",
            data=categories,
            count=int(data.get("count") or len(categories)),
        )

    @strawberry.field(extensions=[BestEffort(no_category)])
    async def category(self, info: Info, id: str) -> Optional[Category]:
        body = await info.context.clients.category.get(f"/api/categories/{id}")
        raw = pick(payload_data(body), "category")
        return to_category(raw) if raw else None

@strawberry.type
class CategoryMutation:
    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def create_category(self, info: Info, input: CategoryInput) -> CategoryResponse:
        body = await info.context.clients.category.post(
            "/api/categories", to_payload(input), context=info.context.request_context)
        return to_category_response(body)

    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def update_category(self, info: Info, id: strawberry.ID, input: CategoryInput) -> CategoryResponse:
        body = await info.context.clients.category.put(
            f"/api/categories/{id}", to_payload(input), context=info.context.request_context)
        return to_category_response(body)

    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def delete_category(self, info: Info, id: strawberry.ID) -> CategoryResponse:
        body = await info.context.clients.category.delete(
            f"/api/categories/{id}", context=info.context.request_context)
        return to_category_response(body)
