from __future__ import annotations

import sys

from dishka import AsyncContainer
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hospital_gateway.app.middleware import (
    AccessLogMiddleware,
    InternalErrorMiddleware,
    RequestIdMiddleware,
    SecurityHeadersMiddleware,
)
from hospital_gateway.app.rate_limiter import create_limiter, rate_limit_string
from hospital_gateway.app.service_registry import ServiceRegistry, build_service_registry
from hospital_gateway.app.startup_setup import (
    create_di_container,
    lifespan,
    serve,
    setup_dependency_injection,
    validate_settings,
)
from hospital_gateway.config import Settings, settings
from hospital_gateway.error_handling.fastapi import register_error_handlers
from hospital_gateway.logging_utils import configure_service_logging

from ..routers import discovery_routes, health_routes, proxy_routes


def create_app(
    config: Settings | None = None,
    registry: ServiceRegistry | None = None,
    container: AsyncContainer | None = None,
) -> FastAPI:
    """
    Compose the gateway application.

    Configuration problems (bad service registrations, missing identity
    secrets) raise ConfigError here, before the server accepts traffic.
    """
    config = config or settings
    validate_settings(config)
    if registry is None:
        registry = build_service_registry(config)

    app = FastAPI(
        title=config.SERVICE_NAME,
        version=config.SERVICE_VERSION,
        description=(
            "Hospital Management API Gateway - authenticates callers and routes "
            "requests to the hospital backend services"
        ),
        docs_url=None if config.is_production() else "/docs",
        redoc_url=None,
        openapi_url=None if config.is_production() else "/openapi.json",
        redirect_slashes=False,
        lifespan=lifespan,
    )
    app.state.service_registry = registry

    # Register error handlers
    register_error_handlers(
        app,
        expose_internal_errors=not config.is_production(),
        available_routes=registry.route_prefixes(),
    )

    # Middleware runs outermost-last-added: request id, access log,
    # security headers, CORS, then the 500 envelope closest to the routes
    app.add_middleware(
        InternalErrorMiddleware, expose_internal_errors=not config.is_production()
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=config.CORS_ALLOW_CREDENTIALS,
        allow_methods=config.CORS_ALLOW_METHODS,
        allow_headers=config.CORS_ALLOW_HEADERS,
    )
    app.add_middleware(SecurityHeadersMiddleware, enable_hsts=config.is_production())
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIdMiddleware)

    # Only proxied traffic counts against the limit; health and discovery are free
    limiter = create_limiter(config)
    app.state.limiter = limiter

    # Include routers; the proxy catch-all goes last
    app.include_router(health_routes.router)
    app.include_router(discovery_routes.router)
    app.include_router(proxy_routes.create_proxy_router(limiter, rate_limit_string(config)))

    # Setup Dishka DI
    if container is None:
        container = create_di_container(config, registry)
    setup_dependency_injection(app, container)

    # Store container reference for cleanup
    app.state.di_container = container

    return app


app = create_app()


def main() -> None:
    configure_service_logging(
        "hospital-api-gateway",
        environment=settings.ENVIRONMENT.value,
        log_level=settings.LOG_LEVEL,
    )
    sys.exit(serve(app, settings))


if __name__ == "__main__":
    main()
