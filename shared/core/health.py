"""
Health checks for the gateway
Response bodies follow the RFC draft "Health Check Response Format for HTTP APIs";
the endpoints match Kubernetes liveness/readiness/startup probes.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from typing import Dict, Any, Optional
from urllib.parse import urlparse
import os
import time
from datetime import datetime, timezone
from enum import Enum
import asyncio
import httpx
import psutil

from .logging_config import get_logger

logger = get_logger(__name__)

def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

class HealthStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"

class ServiceHealth:
    """
    Health endpoints for a stateless service whose only dependencies are
    other HTTP services

    Args:
        service_name: Name reported in every response
        version: Service version
        dependencies: Downstream name -> base URL; each is probed at ``<url>/health``
        timeout: Per-probe timeout in seconds
        transport: Optional httpx transport used for the probes
    """

    def __init__(self, service_name: str, version: str = "1.0.0",
                 dependencies: Optional[Dict[str, str]] = None, timeout: float = 2.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.service_name = service_name
        self.version = version
        self.dependencies = dict(dependencies or {})
        self.timeout = timeout
        self.transport = transport
        self.start_time = time.time()
        self.checks_performed = 0
        self.last_check_time = None

    def create_health_router(self) -> APIRouter:
        router = APIRouter(tags=["health"])

        @router.get("/health", status_code=status.HTTP_200_OK)
        async def health_check() -> Dict[str, Any]:
            """Liveness for load balancers; never touches downstream services"""
            return {
                "status": HealthStatus.PASS,
                "service": self.service_name,
                "version": self.version,
                "releaseId": os.getenv("RELEASE_ID", "unknown"),
                "timestamp": _now()
            }

        @router.get("/health/live", status_code=status.HTTP_200_OK)
        async def liveness() -> Dict[str, Any]:
            return {"status": "alive"}

        @router.get("/health/ready")
        async def readiness() -> JSONResponse:
            """
            Readiness probe
            Pings every downstream service; 503 when any of them fails
            """
            checks = await self._perform_readiness_checks()
            overall_status = self._calculate_overall_status(checks)
            status_code = (status.HTTP_503_SERVICE_UNAVAILABLE if overall_status == HealthStatus.FAIL
                           else status.HTTP_200_OK)

            response = {
                "status": overall_status,
                "version": self.version,
                "releaseId": os.getenv("RELEASE_ID", "unknown"),
                "notes": [],
                "output": "",
                "checks": checks,
                "links": {},
                "serviceId": self.service_name,
                "description": f"{self.service_name} composition layer",
                "timestamp": _now()
            }

            return JSONResponse(status_code=status_code, content=response)

        @router.get("/health/startup")
        async def startup() -> Dict[str, Any]:
            checks = {"config:dependencies": self._check_configuration()}
            if self._calculate_overall_status(checks) == HealthStatus.FAIL:
                return JSONResponse(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    content={"status": "starting", "checks": checks}
                )
            return {"status": "started", "checks": checks}

        @router.get("/metrics")
        async def metrics() -> Dict[str, Any]:
            process = psutil.Process()
            memory = process.memory_info()

            return {
                "service": self.service_name,
                "version": self.version,
                "uptime_seconds": time.time() - self.start_time,
                "checks_performed": self.checks_performed,
                "timestamp": _now(),
                "system": {
                    "memory_rss_bytes": memory.rss,
                    "memory_vms_bytes": memory.vms,
                    "cpu_percent": process.cpu_percent(),
                    "num_threads": process.num_threads()
                }
            }

        return router

    async def _perform_readiness_checks(self) -> Dict[str, Dict[str, Any]]:
        self.checks_performed += 1
        self.last_check_time = time.time()

        names = list(self.dependencies)
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            results = await asyncio.gather(
                *(self._check_dependency(client, name, self.dependencies[name]) for name in names)
            )

        checks = {f"{name}:connectivity": result for name, result in zip(names, results)}
        checks["system:memory"] = self._check_memory()
        return checks

    async def _check_dependency(self, client: httpx.AsyncClient, name: str, base_url: str) -> Dict[str, Any]:
        start_time = time.time()
        try:
            resp = await client.get(f"{base_url.rstrip('/')}/health")
        except httpx.HTTPError as e:
            logger.warning(f"Health probe for {name} failed: {e!r}")
            return {
                "status": HealthStatus.FAIL,
                "componentType": "http",
                "output": f"{name} service unreachable",
                "time": _now()
            }

        response_time = (time.time() - start_time) * 1000
        if resp.status_code >= 400:
            logger.warning(f"Health probe for {name} returned {resp.status_code}")
            return {
                "status": HealthStatus.FAIL,
                "componentType": "http",
                "output": f"{name} service returned {resp.status_code}",
                "time": _now()
            }
        return {
            "status": HealthStatus.PASS,
            "componentType": "http",
            "observedValue": f"{response_time:.2f}ms",
            "observedUnit": "ms",
            "time": _now()
        }

    def _check_memory(self) -> Dict[str, Any]:
        memory = psutil.virtual_memory()
        available_mb = memory.available / (1024 ** 2)

        # Low memory degrades but does not take the gateway out of rotation
        if available_mb < 500:
            status_val = HealthStatus.WARN
        else:
            status_val = HealthStatus.PASS

        return {
            "status": status_val,
            "componentType": "system",
            "observedValue": f"{available_mb:.2f}",
            "observedUnit": "MB",
            "time": _now()
        }

    def _check_configuration(self) -> Dict[str, Any]:
        invalid = [
            name for name, url in self.dependencies.items()
            if urlparse(url).scheme not in ("http", "https") or not urlparse(url).netloc
        ]
        if invalid:
            return {
                "status": HealthStatus.FAIL,
                "componentType": "configuration",
                "output": f"Invalid service URLs: {', '.join(sorted(invalid))}",
                "time": _now()
            }
        return {
            "status": HealthStatus.PASS,
            "componentType": "configuration",
            "time": _now()
        }

    def _calculate_overall_status(self, checks: Dict[str, Dict[str, Any]]) -> HealthStatus:
        statuses = [check.get("status", HealthStatus.PASS) for check in checks.values()]

        if HealthStatus.FAIL in statuses:
            return HealthStatus.FAIL
        elif HealthStatus.WARN in statuses:
            return HealthStatus.WARN
        else:
            return HealthStatus.PASS
