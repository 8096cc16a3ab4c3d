"""Discovery endpoints: what the gateway routes and in which mode it runs."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter

from hospital_gateway.app.service_registry import ServiceRegistry
from hospital_gateway.config import Settings

router = APIRouter(route_class=DishkaRoute, tags=["Discovery"])


@router.get("/")
async def root(
    config: FromDishka[Settings], registry: FromDishka[ServiceRegistry]
) -> dict[str, Any]:
    return {
        "service": config.SERVICE_NAME,
        "version": config.SERVICE_VERSION,
        "mode": registry.mode.value,
        "status": "running",
        "timestamp": datetime.now(UTC).isoformat(),
        "availableServices": registry.enabled_names(),
        "disabledServices": registry.disabled_names(),
    }


@router.get("/services")
async def list_services(registry: FromDishka[ServiceRegistry]) -> dict[str, Any]:
    """Enabled services with their base URLs, plus the names of disabled ones."""
    return {
        "mode": registry.mode.value,
        "availableServices": {
            entry.name: {"url": entry.base_url, "status": "active"}
            for entry in registry.list_all()
            if entry.enabled
        },
        "disabledServices": registry.disabled_names(),
    }
