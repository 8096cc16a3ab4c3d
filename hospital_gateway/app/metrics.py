"""Metrics definitions for the Hospital API Gateway."""

from __future__ import annotations

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram


class GatewayMetrics:
    """A container for all Prometheus metrics for the gateway."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize metrics with optional registry for test isolation."""
        if registry is None:
            registry = REGISTRY
        self.http_requests_total = Counter(
            "gateway_http_requests_total",
            "Total number of proxied HTTP requests handled by the gateway.",
            ["method", "service", "http_status"],
            registry=registry,
        )
        self.http_request_duration_seconds = Histogram(
            "gateway_http_request_duration_seconds",
            "Proxied HTTP request duration in seconds, auth included.",
            ["method", "service"],
            registry=registry,
        )
        self.downstream_service_calls_total = Counter(
            "gateway_downstream_service_calls_total",
            "Total number of calls to downstream services.",
            ["service", "method", "status_code"],
            registry=registry,
        )
        self.downstream_service_call_duration_seconds = Histogram(
            "gateway_downstream_service_call_duration_seconds",
            "Duration of calls to downstream services in seconds.",
            ["service", "method"],
            registry=registry,
        )
        self.auth_attempts_total = Counter(
            "gateway_auth_attempts_total",
            "Authentication attempts by outcome.",
            ["outcome"],
            registry=registry,
        )
        self.api_errors_total = Counter(
            "gateway_api_errors_total",
            "Total number of error responses synthesized by the gateway.",
            ["service", "error_type"],
            registry=registry,
        )
