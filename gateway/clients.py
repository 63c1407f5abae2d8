"""Downstream service clients.

One thin JSON-over-HTTP client per domain service (auth, product, order,
category, coupon). Clients carry no business logic: they attach the caller's
bearer token when one is supplied, and turn transport failures and non-2xx
responses into ``UpstreamError`` so resolvers can apply their error policy.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

import httpx

from shared.core import get_logger
from .core_settings import Settings

logger = get_logger(__name__)

class UpstreamError(Exception):
    """A downstream call failed.

    ``status_code`` is the downstream HTTP status, or ``None`` when the call
    never produced a response (timeout, refused connection, DNS failure).
    """

    def __init__(self, service: str, method: str, path: str, status_code: Optional[int], message: str):
        super().__init__(message)
        self.service = service
        self.method = method
        self.path = path
        self.status_code = status_code
        self.message = message

    @property
    def is_client_error(self) -> bool:
        return self.status_code is not None and 400 <= self.status_code < 500

    @property
    def is_unavailable(self) -> bool:
        return not self.is_client_error

    def __repr__(self) -> str:
        return f"UpstreamError({self.service} {self.method} {self.path} -> {self.status_code}: {self.message})"

def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    text = resp.text.strip()
    return text or resp.reason_phrase or f"HTTP {resp.status_code}"

class ServiceClient:
    """HTTP client bound to one downstream service's base URL."""

    def __init__(self, name: str, base_url: str, timeout: float = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.name = name
        self.base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def request(self, method: str, path: str, body: Any = None, context=None,
                      params: Optional[Dict[str, Any]] = None) -> Any:
        """Send one request and return the decoded JSON body (``None`` for empty responses).

        ``context`` is the per-operation request context; its token, when
        present, is forwarded as ``Authorization: Bearer <token>``.
        """
        headers = {}
        token = getattr(context, "token", None)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        query = {k: v for k, v in (params or {}).items() if v is not None}
        try:
            resp = await self._http.request(method, path, json=body, params=query, headers=headers)
        except httpx.TimeoutException as exc:
            logger.warning(f"{self.name} service timed out: {method} {path}")
            raise UpstreamError(self.name, method, path, None, f"{self.name} service timed out") from exc
        except httpx.HTTPError as exc:
            logger.warning(f"{self.name} service unreachable: {method} {path}: {exc}")
            raise UpstreamError(self.name, method, path, None, f"{self.name} service unavailable") from exc

        if resp.status_code >= 400:
            message = _error_message(resp)
            logger.warning(
                f"{self.name} service returned {resp.status_code}: {method} {path}",
                extra={'extra_fields': {'service': self.name, 'status_code': resp.status_code}},
            )
            raise UpstreamError(self.name, method, path, resp.status_code, message)
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamError(self.name, method, path, resp.status_code,
                                f"{self.name} service returned a non-JSON response") from exc

    async def get(self, path: str, context=None, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, context=context, params=params)

    async def post(self, path: str, body: Any = None, context=None) -> Any:
        return await self.request("POST", path, body=body, context=context)

    async def put(self, path: str, body: Any = None, context=None) -> Any:
        return await self.request("PUT", path, body=body, context=context)

    async def patch(self, path: str, body: Any = None, context=None) -> Any:
        return await self.request("PATCH", path, body=body, context=context)

    async def delete(self, path: str, body: Any = None, context=None) -> Any:
        return await self.request("DELETE", path, body=body, context=context)

    async def aclose(self) -> None:
        await self._http.aclose()

@dataclass(frozen=True)
class ServiceClients:
    """The five downstream clients, built once at startup and shared by all requests."""

    auth: ServiceClient
    product: ServiceClient
    order: ServiceClient
    category: ServiceClient
    coupon: ServiceClient

    @classmethod
    def from_settings(cls, settings: Settings,
                      transport: Optional[httpx.AsyncBaseTransport] = None) -> "ServiceClients":
        timeout = settings.SERVICE_TIMEOUT_SECONDS
        return cls(**{
            name: ServiceClient(name, url, timeout=timeout, transport=transport)
            for name, url in settings.service_urls.items()
        })

    def __iter__(self) -> Iterator[ServiceClient]:
        return iter((self.auth, self.product, self.order, self.category, self.coupon))

    async def aclose(self) -> None:
        for client in self:
            await client.aclose()
