"""Middleware for the Hospital API Gateway."""

from __future__ import annotations

import time
from typing import Any
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from hospital_gateway.error_handling.fastapi import internal_error_response
from hospital_gateway.logging_utils import bind_request_context, create_service_logger

logger = create_service_logger("gateway.middleware")

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Ensure every request carries a request id, echoed back on the response."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER)
        if not request_id or len(request_id) > MAX_REQUEST_ID_LENGTH or not request_id.isascii():
            request_id = uuid4().hex

        request.state.request_id = request_id
        bind_request_context(request_id, request.method, request.url.path)

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add standard security headers to every response."""

    def __init__(self, app: Any, enable_hsts: bool = False) -> None:
        super().__init__(app)
        self.enable_hsts = enable_hsts

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-XSS-Protection", "0")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if self.enable_hsts:
            response.headers.setdefault(
                "Strict-Transport-Security", "max-age=15552000; includeSubDomains"
            )
        return response


class InternalErrorMiddleware(BaseHTTPMiddleware):
    """Render unexpected route errors as the 500 envelope inside the middleware stack.

    Responses produced here still pass through the request-id and security
    header middleware, unlike those of Starlette's outermost error handler.
    """

    def __init__(self, app: Any, expose_internal_errors: bool = False) -> None:
        super().__init__(app)
        self.expose_internal_errors = expose_internal_errors

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            return internal_error_response(request, exc, self.expose_internal_errors)


class AccessLogMiddleware(BaseHTTPMiddleware):
    """One structured log line per request with status and duration."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "Request completed",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
            client=request.client.host if request.client else "unknown",
        )
        return response
