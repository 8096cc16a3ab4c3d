"""
Protocols for the Hospital API Gateway.

Route handlers and the auth gate depend on these interfaces; concrete
implementations are bound in ``hospital_gateway.app.di``.
"""

from __future__ import annotations

from typing import Any, Protocol

from fastapi import Request
from prometheus_client import Counter, Histogram
from starlette.responses import Response

from hospital_gateway.models import AuthContext, ServiceEntry, UserProfile, VerifiedIdentity


class IdentityVerifierProtocol(Protocol):
    """Validates a bearer credential against the identity provider."""

    async def verify(self, token: str) -> VerifiedIdentity | None:
        """Return the identity behind ``token``, or None when it cannot be verified."""
        ...


class ProfileStoreProtocol(Protocol):
    """Loads the profile record (role, active flag, name) for a verified identity."""

    async def get_profile(self, user_id: str) -> UserProfile | None:
        """Return the profile, or None when no profile exists."""
        ...


class ProxyClientProtocol(Protocol):
    """Forwards one inbound request to a backend and relays the answer."""

    async def forward(
        self,
        request: Request,
        entry: ServiceEntry,
        target_url: str,
        auth_context: AuthContext | None,
        request_id: str,
    ) -> Response:
        """Send the request upstream; raise UpstreamUnavailableError when unreachable."""
        ...


class HealthCheckerProtocol(Protocol):
    """Probes the /health endpoint of every enabled backend."""

    async def check_all(self) -> dict[str, Any]:
        ...


class MetricsProtocol(Protocol):
    """Protocol for metrics collection matching GatewayMetrics."""

    @property
    def http_requests_total(self) -> Counter:
        ...

    @property
    def http_request_duration_seconds(self) -> Histogram:
        ...

    @property
    def downstream_service_calls_total(self) -> Counter:
        ...

    @property
    def downstream_service_call_duration_seconds(self) -> Histogram:
        ...

    @property
    def auth_attempts_total(self) -> Counter:
        ...

    @property
    def api_errors_total(self) -> Counter:
        ...
