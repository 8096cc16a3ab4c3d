"""Health and metrics routes for the Hospital API Gateway."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from dishka import FromDishka
from dishka.integrations.fastapi import inject
from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from hospital_gateway.config import Settings
from hospital_gateway.logging_utils import create_service_logger
from hospital_gateway.protocols import HealthCheckerProtocol

router = APIRouter(tags=["Health"])
logger = create_service_logger("gateway.health_routes")


@router.get("/health")
@inject
async def health_check(config: FromDishka[Settings]) -> dict[str, str]:
    """Liveness of the gateway process itself; backends are not contacted."""
    return {
        "status": "healthy",
        "service": config.SERVICE_NAME,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/health/services")
@inject
async def services_health(checker: FromDishka[HealthCheckerProtocol]) -> dict[str, Any]:
    """Probe every enabled backend concurrently and aggregate the results."""
    report = await checker.check_all()
    logger.info(
        "Service health checked",
        status=report["status"],
        healthy=report["statistics"]["healthy"],
        total=report["statistics"]["total"],
    )
    return report


@router.get("/metrics", response_class=PlainTextResponse)
@inject
async def metrics(registry: FromDishka[CollectorRegistry]):
    """Prometheus metrics endpoint."""
    try:
        metrics_data = generate_latest(registry)
        return PlainTextResponse(content=metrics_data, media_type=CONTENT_TYPE_LATEST)
    except Exception as e:
        logger.error(f"Error generating metrics: {e}", exc_info=True)
        return PlainTextResponse(content="Error generating metrics", status_code=500)
