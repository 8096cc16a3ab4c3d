"""Concurrent health probing of the enabled backend services."""

from __future__ import annotations

import asyncio
import time
from datetime import UTC, datetime
from typing import Any

import httpx

from hospital_gateway.app.service_registry import ServiceRegistry
from hospital_gateway.enums import ServiceHealthStatus
from hospital_gateway.logging_utils import create_service_logger
from hospital_gateway.models import ServiceEntry
from hospital_gateway.protocols import HealthCheckerProtocol

logger = create_service_logger("gateway.health_checker")


class HttpHealthChecker(HealthCheckerProtocol):
    """Probes ``base_url + /health`` of every enabled entry with a bounded timeout."""

    def __init__(
        self, client: httpx.AsyncClient, registry: ServiceRegistry, timeout_seconds: float
    ) -> None:
        self._client = client
        self._registry = registry
        self._timeout = timeout_seconds

    async def probe(self, entry: ServiceEntry) -> dict[str, Any]:
        start = time.perf_counter()
        error: str | None = None
        try:
            response = await self._client.get(f"{entry.base_url}/health", timeout=self._timeout)
            status = (
                ServiceHealthStatus.HEALTHY
                if response.status_code == 200
                else ServiceHealthStatus.UNHEALTHY
            )
            if status is ServiceHealthStatus.UNHEALTHY:
                error = f"HTTP {response.status_code}"
        except httpx.HTTPError as exc:
            status = ServiceHealthStatus.UNHEALTHY
            error = type(exc).__name__

        result: dict[str, Any] = {
            "status": status.value,
            "url": entry.base_url,
            "responseTimeMs": round((time.perf_counter() - start) * 1000, 2),
            "lastChecked": datetime.now(UTC).isoformat(),
        }
        if error:
            result["error"] = error
            logger.warning("Service health probe failed", service=entry.name, error=error)
        return result

    async def check_all(self) -> dict[str, Any]:
        entries = [entry for entry in self._registry.list_all() if entry.enabled]
        results = await asyncio.gather(*(self.probe(entry) for entry in entries))
        services = {entry.name: result for entry, result in zip(entries, results, strict=True)}

        healthy = sum(
            1 for r in results if r["status"] == ServiceHealthStatus.HEALTHY.value
        )
        total = len(results)
        average = round(sum(r["responseTimeMs"] for r in results) / total, 2) if total else 0.0

        return {
            "status": "healthy" if healthy == total else "degraded",
            "services": services,
            "statistics": {
                "total": total,
                "healthy": healthy,
                "unhealthy": total - healthy,
                "averageResponseTimeMs": average,
            },
        }
