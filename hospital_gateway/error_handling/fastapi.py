"""FastAPI integration: render every failure as the gateway's JSON error envelope."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from hospital_gateway.enums import ErrorCode
from hospital_gateway.error_handling.factories import route_not_found_detail
from hospital_gateway.error_handling.gateway_error import GatewayError
from hospital_gateway.logging_utils import create_service_logger
from hospital_gateway.models.errors import ErrorDetail

logger = create_service_logger("gateway.error_handling")

GENERIC_ERROR_MESSAGE = "Something went wrong"


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def build_error_body(
    error: str,
    message: str | None = None,
    timestamp: datetime | None = None,
    request_id: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Uniform envelope: {success: false, error, message?, timestamp, requestId?, ...}."""
    body: dict[str, Any] = {"success": False, "error": error}
    if message:
        body["message"] = message
    body["timestamp"] = (timestamp or datetime.now(UTC)).isoformat()
    if request_id:
        body["requestId"] = request_id
    body.update(extra)
    return body


def create_error_response(
    error_detail: ErrorDetail, request_id: str | None = None
) -> JSONResponse:
    extra = dict(error_detail.details)
    if error_detail.service_name:
        extra["serviceName"] = error_detail.service_name
    body = build_error_body(
        error_detail.error,
        error_detail.message,
        error_detail.timestamp,
        request_id,
        code=error_detail.error_code.value,
        **extra,
    )
    return JSONResponse(status_code=error_detail.status_code, content=body)


def register_error_handlers(
    app: FastAPI,
    expose_internal_errors: bool = False,
    available_routes: list[str] | None = None,
) -> None:
    """
    Install the gateway's exception handlers.

    Args:
        app: Application to configure
        expose_internal_errors: Include exception text in 500 responses
            (never enabled in production)
        available_routes: Route prefixes listed in 404 envelopes
    """
    routes = list(available_routes or [])

    @app.exception_handler(GatewayError)
    async def handle_gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
        return create_error_response(exc.error_detail, _request_id(request))

    @app.exception_handler(RateLimitExceeded)
    async def handle_rate_limit_exceeded(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        logger.warning("Rate limit exceeded", limit=str(exc.detail))
        return JSONResponse(
            status_code=429,
            content=build_error_body(
                "Too many requests",
                "Too many requests from this IP, please try again later.",
                request_id=_request_id(request),
                code=ErrorCode.RATE_LIMITED.value,
            ),
        )

    @app.exception_handler(404)
    async def handle_not_found(request: Request, exc: Exception) -> JSONResponse:
        # Paths outside every router answer with the same envelope as unknown prefixes
        detail = route_not_found_detail(
            "match_route", request.url.path, request.method, routes
        )
        return create_error_response(detail, _request_id(request))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=build_error_body(str(exc.detail), request_id=_request_id(request)),
            headers=getattr(exc, "headers", None),
        )

    # Last resort for failures raised by the middleware stack itself
    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        return internal_error_response(request, exc, expose_internal_errors)


def internal_error_response(
    request: Request, exc: Exception, expose_internal_errors: bool = False
) -> JSONResponse:
    """500 envelope for an exception no other handler claimed."""
    logger.error(
        "Unhandled error while processing request",
        method=request.method,
        path=request.url.path,
        exc_info=exc,
    )
    message = str(exc) if expose_internal_errors else GENERIC_ERROR_MESSAGE
    return JSONResponse(
        status_code=500,
        content=build_error_body(
            "Internal server error",
            message,
            request_id=_request_id(request),
            code=ErrorCode.INTERNAL_ERROR.value,
        ),
    )
