"""Request-scoped DataLoaders for per-item secondary lookups.

A page of products resolving ``seller`` goes through one loader dispatch:
keys are de-duplicated and fetched concurrently in a single batch instead of
one sequential auth-service round trip per product. Loaders live on the
GraphQL context, so nothing is cached past the end of the operation.
"""
import asyncio
from typing import List

from pydantic import ValidationError
from strawberry.dataloader import DataLoader

from shared.core import get_logger
from .clients import ServiceClients, UpstreamError
from .documents import UserDocument
from .normalize import payload_data, pick

logger = get_logger(__name__)

PLACEHOLDER_SELLER_NAME = "Seller"

def placeholder_seller(seller_id: str) -> UserDocument:
    return UserDocument(id=seller_id, name=PLACEHOLDER_SELLER_NAME, email=None)

class GatewayLoaders:
    def __init__(self, clients: ServiceClients):
        self.clients = clients
        self.sellers: DataLoader[str, UserDocument] = DataLoader(load_fn=self._load_sellers)

    async def _fetch_seller(self, seller_id: str) -> UserDocument:
        try:
            body = await self.clients.auth.get(f"/api/users/{seller_id}")
        except UpstreamError as exc:
            logger.warning(f"Seller lookup failed for {seller_id}: {exc.message}")
            return placeholder_seller(seller_id)
        user = pick(payload_data(body), "user")
        if not user and isinstance(body, dict):
            user = body.get("user")
        if not user:
            return placeholder_seller(seller_id)
        try:
            return UserDocument.model_validate(user)
        except ValidationError:
            logger.warning(f"Malformed seller document for {seller_id}")
            return placeholder_seller(seller_id)

    async def _load_sellers(self, keys: List[str]) -> List[UserDocument]:
        return list(await asyncio.gather(*(self._fetch_seller(key) for key in keys)))
