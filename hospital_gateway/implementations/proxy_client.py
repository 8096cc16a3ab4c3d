"""HTTP proxy client for the gateway.

Forwards an inbound FastAPI request to a backend with httpx and relays the
backend response (status, headers, body) as a streamed response.
"""

from __future__ import annotations

import json
import time
from collections.abc import AsyncIterator

import httpx
from fastapi import Request
from starlette.responses import Response, StreamingResponse

from hospital_gateway.error_handling import raise_upstream_unavailable
from hospital_gateway.logging_utils import create_service_logger
from hospital_gateway.models import IDENTITY_HEADERS, AuthContext, ServiceEntry
from hospital_gateway.protocols import MetricsProtocol, ProxyClientProtocol

logger = create_service_logger("gateway.proxy_client")

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailers",
        "transfer-encoding",
        "upgrade",
    }
)
BODY_REWRITE_METHODS = frozenset({"POST", "PUT", "PATCH"})

REQUEST_ID_HEADER = "x-request-id"
FORWARDED_HEADERS = ("x-forwarded-for", "x-forwarded-proto", "x-forwarded-host")
GATEWAY_SET_HEADERS = frozenset({REQUEST_ID_HEADER, *FORWARDED_HEADERS, *IDENTITY_HEADERS})


def filter_request_headers(request: Request) -> list[tuple[str, str]]:
    """Copy inbound headers minus hop-by-hop, host, length and caller-supplied identity.

    Repeated headers stay repeated. Headers the gateway sets itself are dropped
    here and added back by the caller.
    """
    excluded = HOP_BY_HOP_HEADERS | GATEWAY_SET_HEADERS | {"host", "content-length"}
    return [
        (key, value)
        for key, value in request.headers.items()
        if key.lower() not in excluded
    ]


def filter_response_headers(headers: httpx.Headers) -> list[tuple[bytes, bytes]]:
    # Raw pairs keep repeated headers such as Set-Cookie and their original bytes
    return [
        (key, value)
        for key, value in headers.raw
        if key.decode("latin-1").lower() not in HOP_BY_HOP_HEADERS
    ]


def _forwarded_headers(request: Request) -> dict[str, str]:
    client_host = request.client.host if request.client else ""
    prior = request.headers.get("x-forwarded-for")
    forwarded_for = f"{prior}, {client_host}" if prior and client_host else prior or client_host
    headers = {
        "x-forwarded-proto": request.url.scheme,
        "x-forwarded-host": request.headers.get("host", ""),
    }
    if forwarded_for:
        headers["x-forwarded-for"] = forwarded_for
    return headers


def _is_json(content_type: str | None) -> bool:
    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


async def prepare_body(request: Request, headers: list[tuple[str, str]]) -> bytes | None:
    """
    Read the inbound body for forwarding.

    JSON bodies of POST/PUT/PATCH requests are re-serialized compactly and the
    Content-Length header is recomputed for the forwarded bytes.
    """
    body = await request.body()
    method = request.method.upper()
    if method in BODY_REWRITE_METHODS and body and _is_json(request.headers.get("content-type")):
        try:
            parsed = json.loads(body)
        except ValueError:
            # Backend answers malformed JSON itself
            logger.debug("Forwarding unparseable JSON body unchanged", path=request.url.path)
        else:
            body = json.dumps(parsed, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    if body or method in BODY_REWRITE_METHODS:
        headers.append(("content-length", str(len(body))))
        return body
    return None


async def _relay(upstream: httpx.Response) -> AsyncIterator[bytes]:
    try:
        async for chunk in upstream.aiter_raw():
            yield chunk
    finally:
        await upstream.aclose()


class HttpxProxyClient(ProxyClientProtocol):
    """Proxy client backed by one shared httpx AsyncClient connection pool."""

    def __init__(self, client: httpx.AsyncClient, metrics: MetricsProtocol) -> None:
        self._client = client
        self._metrics = metrics

    async def forward(
        self,
        request: Request,
        entry: ServiceEntry,
        target_url: str,
        auth_context: AuthContext | None,
        request_id: str,
    ) -> Response:
        method = request.method.upper()
        headers = filter_request_headers(request)
        headers.extend(_forwarded_headers(request).items())
        headers.append((REQUEST_ID_HEADER, request_id))
        if auth_context is not None:
            headers.extend(auth_context.to_headers().items())
        content = await prepare_body(request, headers)

        upstream_request = self._client.build_request(
            method,
            target_url,
            headers=headers,
            content=content,
            timeout=httpx.Timeout(entry.timeout_seconds),
        )

        logger.debug("Proxying request", service=entry.name, target=target_url)
        start = time.perf_counter()
        try:
            upstream = await self._client.send(upstream_request, stream=True)
        except httpx.TransportError as exc:
            duration = time.perf_counter() - start
            status_label = "timeout" if isinstance(exc, httpx.TimeoutException) else "error"
            self._metrics.downstream_service_calls_total.labels(
                service=entry.name, method=method, status_code=status_label
            ).inc()
            self._metrics.downstream_service_call_duration_seconds.labels(
                service=entry.name, method=method
            ).observe(duration)
            logger.error(
                "Backend unreachable",
                service=entry.name,
                target=target_url,
                error_type=type(exc).__name__,
                error=str(exc),
                duration_ms=round(duration * 1000, 2),
            )
            raise_upstream_unavailable(
                operation="proxy_request",
                service_name=entry.name,
                display_name=entry.display_name,
            )

        duration = time.perf_counter() - start
        self._metrics.downstream_service_calls_total.labels(
            service=entry.name, method=method, status_code=str(upstream.status_code)
        ).inc()
        self._metrics.downstream_service_call_duration_seconds.labels(
            service=entry.name, method=method
        ).observe(duration)
        logger.info(
            "Backend responded",
            service=entry.name,
            status_code=upstream.status_code,
            duration_ms=round(duration * 1000, 2),
        )

        response = StreamingResponse(_relay(upstream), status_code=upstream.status_code)
        response.raw_headers.extend(filter_response_headers(upstream.headers))
        return response
