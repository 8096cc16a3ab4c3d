from __future__ import annotations

import time

from dishka.integrations.fastapi import FromDishka, inject
from fastapi import APIRouter, Request
from slowapi import Limiter
from starlette.responses import Response

from hospital_gateway.app.auth_gate import AuthGate
from hospital_gateway.app.di import RequestId
from hospital_gateway.app.request_router import RequestRouter
from hospital_gateway.error_handling import GatewayError
from hospital_gateway.logging_utils import create_service_logger
from hospital_gateway.models import AuthContext, ServiceEntry
from hospital_gateway.protocols import MetricsProtocol, ProxyClientProtocol

logger = create_service_logger("gateway.proxy_routes")

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


async def _authorize(
    request: Request, entry: ServiceEntry, auth_gate: AuthGate
) -> AuthContext | None:
    if not entry.protected:
        logger.info("Public route", service=entry.name, state="PUBLIC")
        return None

    auth_context = await auth_gate.authenticate(request)
    required_role = entry.required_role_for(request.url.path)
    if required_role is not None:
        auth_gate.require_role(auth_context, required_role)
    logger.info(
        "Request authorized", service=entry.name, user_id=auth_context.user_id, state="AUTHORIZED"
    )
    return auth_context


@inject
async def proxy_request(
    request: Request,
    request_router: FromDishka[RequestRouter],
    auth_gate: FromDishka[AuthGate],
    proxy_client: FromDishka[ProxyClientProtocol],
    metrics: FromDishka[MetricsProtocol],
    request_id: FromDishka[RequestId],
) -> Response:
    """Match, authenticate when required, forward and relay the backend response."""
    start = time.perf_counter()
    method = request.method.upper()
    path = request.url.path
    service = "unmatched"
    logger.debug("Request received", state="RECEIVED")

    try:
        entry = request_router.match(path, method)
        service = entry.name
        logger.info("Route matched", service=service, state="MATCHED")
        request_router.ensure_enabled(entry)

        if method in ("GET", "HEAD") and request_router.is_health_check(entry, path):
            # Backend health is public and always served from the backend's own /health
            auth_context = None
            target_url = request_router.build_health_url(entry)
        else:
            auth_context = await _authorize(request, entry, auth_gate)
            target_url = request_router.build_target_url(entry, path, request.url.query)

        logger.info("Forwarding request", service=service, state="FORWARDING")
        response = await proxy_client.forward(
            request, entry, target_url, auth_context, request_id
        )
    except GatewayError as exc:
        logger.info(
            "Request failed",
            service=service,
            status_code=exc.status_code,
            error_code=exc.error_code,
            state="FAILED",
        )
        metrics.api_errors_total.labels(service=service, error_type=exc.error_code).inc()
        metrics.http_requests_total.labels(
            method=method, service=service, http_status=str(exc.status_code)
        ).inc()
        raise
    finally:
        metrics.http_request_duration_seconds.labels(method=method, service=service).observe(
            time.perf_counter() - start
        )

    logger.info(
        "Response relayed", service=service, status_code=response.status_code, state="RELAYED"
    )
    metrics.http_requests_total.labels(
        method=method, service=service, http_status=str(response.status_code)
    ).inc()
    return response


def create_proxy_router(limiter: Limiter, rate_limit: str) -> APIRouter:
    """Mount the catch-all proxy behind the per-client-IP rate limit."""
    router = APIRouter()
    router.add_api_route(
        "/api/{path:path}",
        limiter.limit(rate_limit)(proxy_request),
        methods=PROXY_METHODS,
        summary="Backend Service Proxy",
        description="Route requests by path prefix to the registered backend service",
        include_in_schema=False,
    )
    return router
