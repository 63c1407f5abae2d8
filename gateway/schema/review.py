"""Product reviews: stored by the product service, attributed via the auth service."""
from typing import Any, Dict, List, Optional

import strawberry
from strawberry.types import Info

from ..documents import ReviewDocument, UserDocument
from ..errors import BestEffort, ErrorKind, IsAuthenticated, Mandatory, graph_error, message_of
from ..normalize import items_of, iso_datetime, payload_data, pick
from .common import Pagination, to_pagination

@strawberry.type
class Review:
    id: strawberry.ID
    product_id: strawberry.ID
    user_id: str
    user_name: str
    rating: int
    comment: str
    helpful: int
    is_approved: bool
    created_at: Optional[str]
    updated_at: Optional[str]

@strawberry.type
class ReviewConnection:
    reviews: List[Review]
    pagination: Pagination

@strawberry.type
class CreateReviewResponse:
    success: bool
    message: str
    review: Optional[Review] = None

@strawberry.input
class CreateReviewInput:
    rating: int
    comment: str

def to_review(raw: Dict[str, Any]) -> Review:
    doc = ReviewDocument.model_validate(raw)
    return Review(
        id=doc.id or "",
        product_id=doc.productId or "",
        user_id=doc.userId or "",
        user_name=doc.userName or "",
        rating=doc.rating or 0,
        comment=doc.comment or "",
        helpful=doc.helpful or 0,
        is_approved=doc.isApproved if doc.isApproved is not None else True,
        created_at=iso_datetime(doc.createdAt),
        updated_at=iso_datetime(doc.updatedAt),
    )

async def current_user(info: Info) -> Optional[UserDocument]:
    body = await info.context.clients.auth.get("/api/auth/me", context=info.context.request_context)
    user = payload_data(body).get("user")
    if not isinstance(user, dict) and isinstance(body, dict):
        user = body.get("user")
    return UserDocument.model_validate(user) if isinstance(user, dict) else None

def empty_reviews(error: Exception, product_id: str, page: int = 1, limit: int = 10) -> ReviewConnection:
    return ReviewConnection(reviews=[], pagination=Pagination(page=page, limit=limit, total=0, pages=0))

def review_not_created(error: Exception, **_: Any) -> CreateReviewResponse:
    return CreateReviewResponse(success=False, message=message_of(error, "Failed to submit review"))

@strawberry.type
class ReviewQuery:
    @strawberry.field(extensions=[BestEffort(empty_reviews)])
    async def product_reviews(self, info: Info, product_id: strawberry.ID, page: int = 1,
                              limit: int = 10) -> ReviewConnection:
        body = await info.context.clients.product.get(
            f"/api/reviews/{product_id}", params={"page": page, "limit": limit})
        data = payload_data(body)
        reviews = [to_review(raw) for raw in items_of(data, "reviews")]
        return ReviewConnection(reviews=reviews, pagination=to_pagination(data.get("pagination"), page, limit, len(reviews)))

@strawberry.type
class ReviewMutation:
    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[BestEffort(review_not_created)])
    async def create_review(self, info: Info, product_id: strawberry.ID,
                            input: CreateReviewInput) -> CreateReviewResponse:
        # The review is attributed to the caller, so the user lookup must finish first
        user = await current_user(info)
        if user is None:
            return CreateReviewResponse(success=False, message="Unable to get user information")
        body = await info.context.clients.product.post(f"/api/reviews/{product_id}", {
            "userId": user.id,
            "userName": user.name,
            "rating": input.rating,
            "comment": input.comment,
        }, context=info.context.request_context)
        body = body if isinstance(body, dict) else {}
        raw = body.get("data")
        return CreateReviewResponse(
            success=bool(body.get("success", True)),
            message=body.get("message") or "Review submitted",
            review=to_review(pick(raw, "review")) if isinstance(raw, dict) else None,
        )

    @strawberry.field(extensions=[Mandatory()])
    async def mark_review_helpful(self, info: Info, review_id: strawberry.ID) -> Optional[Review]:
        body = await info.context.clients.product.post(f"/api/reviews/{review_id}/helpful")
        raw = pick(payload_data(body), "review")
        return to_review(raw) if raw else None

    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def delete_review(self, info: Info, review_id: strawberry.ID) -> bool:
        user = await current_user(info)
        if user is None:
            raise graph_error(ErrorKind.UNAUTHENTICATED, "Unable to get user information", service="auth")
        await info.context.clients.product.delete(f"/api/reviews/{review_id}", {"userId": user.id},
                                                  context=info.context.request_context)
        return True
