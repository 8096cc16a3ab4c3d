from __future__ import annotations

from collections.abc import AsyncIterator
from typing import NewType
from uuid import uuid4

import httpx
from dishka import Provider, Scope, provide
from fastapi import Request
from prometheus_client import REGISTRY, CollectorRegistry

from hospital_gateway.app.auth_gate import AuthGate
from hospital_gateway.app.metrics import GatewayMetrics
from hospital_gateway.app.request_router import RequestRouter
from hospital_gateway.app.service_registry import ServiceRegistry, build_service_registry
from hospital_gateway.config import Settings, settings
from hospital_gateway.enums import IdentityVerificationMode
from hospital_gateway.implementations.health_checker import HttpHealthChecker
from hospital_gateway.implementations.identity_verifier import (
    JwtIdentityVerifier,
    SupabaseIdentityVerifier,
)
from hospital_gateway.implementations.profile_store import SupabaseProfileStore
from hospital_gateway.implementations.proxy_client import HttpxProxyClient
from hospital_gateway.protocols import (
    HealthCheckerProtocol,
    IdentityVerifierProtocol,
    MetricsProtocol,
    ProfileStoreProtocol,
    ProxyClientProtocol,
)

RequestId = NewType("RequestId", str)


class GatewayProvider(Provider):
    """APP-scoped infrastructure: configuration, route table, outbound clients."""

    scope = Scope.APP

    def __init__(
        self, config: Settings | None = None, registry: ServiceRegistry | None = None
    ) -> None:
        super().__init__()
        self._config = config or settings
        self._registry = registry

    @provide
    def get_config(self) -> Settings:
        return self._config

    @provide
    def provide_service_registry(self, config: Settings) -> ServiceRegistry:
        if self._registry is not None:
            return self._registry
        return build_service_registry(config)

    @provide
    def provide_request_router(self, registry: ServiceRegistry) -> RequestRouter:
        return RequestRouter(registry)

    @provide
    async def get_http_client(self, config: Settings) -> AsyncIterator[httpx.AsyncClient]:
        # One pool shared by proxying, identity lookups and health probes
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(config.PROXY_TIMEOUT_MS / 1000),
            limits=httpx.Limits(
                max_connections=config.MAX_CONNECTIONS,
                max_keepalive_connections=config.MAX_KEEPALIVE_CONNECTIONS,
            ),
            follow_redirects=False,
        ) as client:
            yield client

    @provide
    def provide_registry(self) -> CollectorRegistry:
        """Provide the global Prometheus metrics registry."""
        return REGISTRY

    @provide
    def provide_metrics(self, registry: CollectorRegistry) -> MetricsProtocol:
        return GatewayMetrics(registry=registry)

    @provide
    def provide_proxy_client(
        self, client: httpx.AsyncClient, metrics: MetricsProtocol
    ) -> ProxyClientProtocol:
        return HttpxProxyClient(client, metrics)

    @provide
    def provide_identity_verifier(
        self, config: Settings, client: httpx.AsyncClient
    ) -> IdentityVerifierProtocol:
        if config.IDENTITY_VERIFICATION_MODE == IdentityVerificationMode.JWT:
            return JwtIdentityVerifier(config)
        return SupabaseIdentityVerifier(client, config)

    @provide
    def provide_profile_store(
        self, config: Settings, client: httpx.AsyncClient
    ) -> ProfileStoreProtocol:
        return SupabaseProfileStore(client, config)

    @provide
    def provide_auth_gate(
        self,
        verifier: IdentityVerifierProtocol,
        profile_store: ProfileStoreProtocol,
        metrics: MetricsProtocol,
    ) -> AuthGate:
        return AuthGate(verifier, profile_store, metrics)

    @provide
    def provide_health_checker(
        self, config: Settings, client: httpx.AsyncClient, registry: ServiceRegistry
    ) -> HealthCheckerProtocol:
        return HttpHealthChecker(client, registry, config.HEALTH_PROBE_TIMEOUT_SECONDS)


class RequestContextProvider(Provider):
    """REQUEST-scoped values derived from the current FastAPI request.

    The Request itself comes from dishka's FastapiProvider context.
    """

    @provide(scope=Scope.REQUEST)
    def provide_request_id(self, request: Request) -> RequestId:
        """Request id set by RequestIdMiddleware."""
        return RequestId(getattr(request.state, "request_id", None) or uuid4().hex)
