"""GraphQL gateway main module."""
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from strawberry.fastapi import GraphQLRouter

from shared.core import RequestLoggingMiddleware, ServiceHealth, get_logger, setup_logging
from .clients import ServiceClients
from .context import get_context
from .core_settings import Settings, get_settings
from .schema import schema

SERVICE_NAME = "graphql-gateway"
GATEWAY_VERSION = "1.0.0"

logger = get_logger(__name__)

# Security headers middleware
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        return response

def create_app(settings: Optional[Settings] = None,
               transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    """Build the gateway application.

    ``transport`` replaces the network for every downstream client; tests pass
    one, production leaves it unset.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {SERVICE_NAME} version {GATEWAY_VERSION}")
        app.state.clients = ServiceClients.from_settings(settings, transport=transport)
        try:
            yield
        finally:
            logger.info(f"Shutting down {SERVICE_NAME}")
            await app.state.clients.aclose()

    app = FastAPI(title="GraphQL Gateway", version=GATEWAY_VERSION, lifespan=lifespan,
                  docs_url="/swagger", redoc_url=None)

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", include_in_schema=False)
    async def root():
        """Friendly landing endpoint for the gateway (no auth)."""
        return {
            "service": SERVICE_NAME,
            "version": GATEWAY_VERSION,
            "graphql": "/graphql",
            "health": "/health",
            "ready": "/health/ready",
            "metrics": "/metrics",
        }

    #############################
    # Health                    #
    #############################

    health_service = ServiceHealth(SERVICE_NAME, GATEWAY_VERSION,
                                   dependencies=settings.service_urls, transport=transport)
    app.include_router(health_service.create_health_router())

    #############################
    # GraphQL                   #
    #############################

    graphql_app = GraphQLRouter(schema, graphql_ide="graphiql" if settings.GRAPHIQL else None,
                                context_getter=get_context)
    app.include_router(graphql_app, prefix="/graphql", include_in_schema=False)

    return app

setup_logging(SERVICE_NAME, level=get_settings().LOG_LEVEL)

app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("gateway.main:app", host="0.0.0.0", port=get_settings().PORT)
