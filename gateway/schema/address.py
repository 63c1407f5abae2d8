from typing import List, Optional

import strawberry
from strawberry.types import Info

from ..documents import AddressDocument
from ..errors import IsAuthenticated, Mandatory
from ..normalize import items_of, iso_datetime, payload_data, pick
from .common import MutationResponse, to_payload

ADDRESSES_PATH = "/api/addresses"

@strawberry.type
class UserAddress:
    id: strawberry.ID
    user_id: str
    street: str
    city: str
    state: str
    zip: str
    country: str
    is_default: bool
    label: Optional[str]
    created_at: Optional[str]
    updated_at: Optional[str]

@strawberry.type
class AddressList:
    addresses: List[UserAddress]

@strawberry.type
class AddressResponse:
    success: bool
    message: Optional[str]
    address: Optional[UserAddress]

@strawberry.input
class UserAddressInput:
    street: str
    city: str
    state: str
    zip: str
    country: str
    label: Optional[str] = None
    is_default: Optional[bool] = None

@strawberry.input
class UpdateUserAddressInput:
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None
    label: Optional[str] = None
    is_default: Optional[bool] = None

def to_user_address(raw: dict) -> UserAddress:
    doc = AddressDocument.model_validate(raw)
    return UserAddress(
        id=doc.id or "",
        user_id=doc.userId or "",
        street=doc.street or "",
        city=doc.city or "",
        state=doc.state or "",
        zip=doc.zip or "",
        country=doc.country or "",
        is_default=bool(doc.isDefault),
        label=doc.label,
        created_at=iso_datetime(doc.createdAt),
        updated_at=iso_datetime(doc.updatedAt),
    )

def to_address_response(body) -> AddressResponse:
    body = body if isinstance(body, dict) else {}
    raw = pick(payload_data(body), "address") if isinstance(body.get("data"), dict) else None
    return AddressResponse(
        success=bool(body.get("success", True)),
        message=body.get("message"),
        address=to_user_address(raw) if raw else None,
    )

@strawberry.type
class AddressQuery:
    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def my_addresses(self, info: Info) -> AddressList:
        body = await info.context.clients.auth.get(ADDRESSES_PATH, context=info.context.request_context)
        return AddressList(addresses=[to_user_address(raw) for raw in items_of(payload_data(body), "addresses")])

@strawberry.type
class AddressMutation:
    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def add_address(self, info: Info, input: UserAddressInput) -> AddressResponse:
        body = await info.context.clients.auth.post(
            ADDRESSES_PATH, to_payload(input), context=info.context.request_context)
        return to_address_response(body)

    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def update_address(self, info: Info, id: strawberry.ID, input: UpdateUserAddressInput) -> AddressResponse:
        body = await info.context.clients.auth.put(
            f"{ADDRESSES_PATH}/{id}", to_payload(input), context=info.context.request_context)
        return to_address_response(body)

    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def delete_address(self, info: Info, id: strawberry.ID) -> MutationResponse:
        body = await info.context.clients.auth.delete(f"{ADDRESSES_PATH}/{id}", context=info.context.request_context)
        body = body if isinstance(body, dict) else {}
        return MutationResponse(success=bool(body.get("success", True)),
                                message=body.get("message") or "Address deleted")

    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def set_default_address(self, info: Info, id: strawberry.ID) -> AddressResponse:
        body = await info.context.clients.auth.patch(
            f"{ADDRESSES_PATH}/{id}/default", context=info.context.request_context)
        return to_address_response(body)
