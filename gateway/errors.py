"""Error translation and per-operation failure policy.

Every root field declares exactly one policy as a Strawberry field extension:

* ``Mandatory()``: downstream failures surface as GraphQL errors. Used for
  identity and money-moving operations and for anything the caller must not
  mistake for success.
* ``BestEffort(fallback)``: downstream failures are logged and replaced by
  ``fallback(error, **arguments)``. Used for advisory reads and aggregates.

Auth-gated fields additionally carry ``IsAuthenticated``, which runs before the
resolver so an anonymous call never reaches a downstream service.
"""
from enum import Enum
from typing import Any, Callable, Dict, Optional

from graphql import GraphQLError
from pydantic import ValidationError
from strawberry.extensions import FieldExtension
from strawberry.permission import BasePermission
from strawberry.types import Info

from shared.core import get_logger
from .clients import UpstreamError

logger = get_logger(__name__)

AUTH_REQUIRED_MESSAGE = "Authentication required"
INVALID_RESPONSE_MESSAGE = "Invalid response from downstream service"

class ErrorKind(str, Enum):
    UNAUTHENTICATED = "UNAUTHENTICATED"
    UPSTREAM_VALIDATION = "UPSTREAM_VALIDATION"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"

class Policy(str, Enum):
    MANDATORY = "mandatory"
    BEST_EFFORT = "best_effort"

def classify(error: UpstreamError) -> ErrorKind:
    if error.status_code == 401:
        return ErrorKind.UNAUTHENTICATED
    if error.is_client_error:
        return ErrorKind.UPSTREAM_VALIDATION
    return ErrorKind.UPSTREAM_UNAVAILABLE

def graph_error(kind: ErrorKind, message: str, service: Optional[str] = None,
                status: Optional[int] = None) -> GraphQLError:
    extensions: Dict[str, Any] = {"code": kind.value}
    if service:
        extensions["service"] = service
    if status is not None:
        extensions["status"] = status
    return GraphQLError(message, extensions=extensions)

def translate(error: UpstreamError) -> GraphQLError:
    """Map a downstream failure to a graph error; 4xx messages pass through verbatim."""
    return graph_error(classify(error), error.message, service=error.service, status=error.status_code)

def unauthenticated(message: str = AUTH_REQUIRED_MESSAGE) -> GraphQLError:
    return graph_error(ErrorKind.UNAUTHENTICATED, message)

def require_entity(raw: Any, service: str) -> Dict[str, Any]:
    """``raw`` when it is an entity with an id; a 2xx reply without one is an upstream fault."""
    if isinstance(raw, dict) and (raw.get("_id") or raw.get("id")):
        return raw
    logger.error(f"{service} service replied without an entity")
    raise graph_error(ErrorKind.UPSTREAM_UNAVAILABLE, INVALID_RESPONSE_MESSAGE, service=service)

def message_of(error: Exception, default: str) -> str:
    """Downstream message for client errors, ``default`` for everything else."""
    if isinstance(error, UpstreamError) and error.is_client_error and error.message:
        return error.message
    return default

class IsAuthenticated(BasePermission):
    message = AUTH_REQUIRED_MESSAGE
    error_extensions = {"code": ErrorKind.UNAUTHENTICATED.value}

    def has_permission(self, source: Any, info: Info, **kwargs: Any) -> bool:
        return bool(info.context.token)

class Mandatory(FieldExtension):
    policy = Policy.MANDATORY

    async def resolve_async(self, next_: Callable, source: Any, info: Info, **kwargs: Any) -> Any:
        try:
            return await next_(source, info, **kwargs)
        except UpstreamError as exc:
            raise translate(exc) from exc
        except ValidationError as exc:
            logger.error(f"Malformed downstream payload for {info.field_name}: {exc}")
            raise graph_error(ErrorKind.UPSTREAM_UNAVAILABLE, INVALID_RESPONSE_MESSAGE) from exc

class BestEffort(FieldExtension):
    policy = Policy.BEST_EFFORT

    def __init__(self, fallback: Callable[..., Any]):
        self.fallback = fallback

    async def resolve_async(self, next_: Callable, source: Any, info: Info, **kwargs: Any) -> Any:
        try:
            return await next_(source, info, **kwargs)
        except (UpstreamError, ValueError, TypeError) as exc:
            logger.warning(f"Degrading {info.field_name}: {exc!r}")
            return self.fallback(exc, **kwargs)

def policy_of(field) -> Optional[Policy]:
    policies = [ext.policy for ext in field.extensions if isinstance(ext, (Mandatory, BestEffort))]
    return policies[0] if len(policies) == 1 else None
