"""Shared fixtures: test settings, downstream clients, a respx router and a GraphQL runner."""
from typing import Any, AsyncIterator, Dict, Optional

import pytest
import respx

from gateway.clients import ServiceClients
from gateway.context import GatewayContext, RequestContext
from gateway.core_settings import Settings
from gateway.schema import schema

from helpers import AUTH, CATEGORY, COUPON, ORDER, PRODUCT

@pytest.fixture
def settings() -> Settings:
    return Settings(
        AUTH_SERVICE_URL=f"http://{AUTH}",
        PRODUCT_SERVICE_URL=f"http://{PRODUCT}",
        ORDER_SERVICE_URL=f"http://{ORDER}",
        CATEGORY_SERVICE_URL=f"http://{CATEGORY}",
        COUPON_SERVICE_URL=f"http://{COUPON}",
        SERVICE_TIMEOUT_SECONDS=1.0,
        GRAPHIQL=False,
    )

@pytest.fixture
def router():
    """respx router; unmatched requests fail the test instead of reaching the network."""
    with respx.mock(assert_all_called=False) as mock:
        yield mock

@pytest.fixture
async def clients(settings) -> AsyncIterator[ServiceClients]:
    built = ServiceClients.from_settings(settings)
    yield built
    await built.aclose()

@pytest.fixture
def execute(clients):
    async def run(query: str, variables: Optional[Dict[str, Any]] = None, token: Optional[str] = None):
        context = GatewayContext(RequestContext(token=token), clients)
        return await schema.execute(query, variable_values=variables, context_value=context)
    return run
