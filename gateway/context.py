"""Per-operation GraphQL context."""
from dataclasses import dataclass
from typing import Mapping, Optional

from fastapi import Request
from strawberry.fastapi import BaseContext

from .clients import ServiceClients
from .loaders import GatewayLoaders

BEARER_SCHEME = "bearer"

@dataclass(frozen=True)
class RequestContext:
    token: Optional[str] = None

def extract_token(headers: Mapping[str, str]) -> Optional[str]:
    """Read the bearer token from an ``Authorization`` header.

    Header lookup is case-insensitive. A value without the ``Bearer`` scheme is
    taken as the raw token. Never raises; returns ``None`` when there is no token.
    """
    raw = None
    for key, value in headers.items():
        if key.lower() == "authorization":
            raw = value
            break
    if not raw or not raw.strip():
        return None
    scheme, _, rest = raw.strip().partition(" ")
    if scheme.lower() == BEARER_SCHEME:
        token = rest.strip()
    else:
        token = raw.strip()
    return token or None

def build_request_context(request: Request) -> RequestContext:
    return RequestContext(token=extract_token(request.headers))

class GatewayContext(BaseContext):
    """Strawberry context: the immutable request context plus request-scoped loaders."""

    def __init__(self, request_context: RequestContext, clients: ServiceClients):
        super().__init__()
        self.request_context = request_context
        self.clients = clients
        self.loaders = GatewayLoaders(clients)

    @property
    def token(self) -> Optional[str]:
        return self.request_context.token

async def get_context(request: Request) -> GatewayContext:
    return GatewayContext(build_request_context(request), request.app.state.clients)
