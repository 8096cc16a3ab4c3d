"""Startup setup for the Hospital API Gateway."""

from __future__ import annotations

import asyncio
import signal
import threading
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import Any

import uvicorn
from dishka import AsyncContainer, make_async_container
from dishka.integrations.fastapi import FastapiProvider, setup_dishka
from fastapi import FastAPI

from hospital_gateway.app.di import GatewayProvider, RequestContextProvider
from hospital_gateway.app.service_registry import ServiceRegistry
from hospital_gateway.config import Settings
from hospital_gateway.enums import IdentityVerificationMode
from hospital_gateway.error_handling import raise_configuration_error
from hospital_gateway.logging_utils import create_service_logger

logger = create_service_logger("gateway.startup")


def validate_settings(config: Settings) -> None:
    """Reject configurations the gateway cannot serve with. Raises ConfigError."""
    if config.IDENTITY_VERIFICATION_MODE == IdentityVerificationMode.JWT:
        secret = config.IDENTITY_JWT_SECRET
        if secret is None or not secret.get_secret_value():
            raise_configuration_error(
                operation="validate_settings",
                message="IDENTITY_JWT_SECRET is required for jwt identity verification",
            )
    if config.RATE_LIMIT_MAX <= 0 or config.RATE_LIMIT_WINDOW_SECONDS <= 0:
        raise_configuration_error(
            operation="validate_settings",
            message="Rate limit max and window must be positive",
            rateLimitMax=config.RATE_LIMIT_MAX,
            rateLimitWindowSeconds=config.RATE_LIMIT_WINDOW_SECONDS,
        )


def create_di_container(config: Settings, registry: ServiceRegistry) -> AsyncContainer:
    """Create and configure the DI container."""
    try:
        logger.info("Creating DI container...")
        container = make_async_container(
            GatewayProvider(config=config, registry=registry),
            RequestContextProvider(),
            FastapiProvider(),  # Provides Request object to context
        )
        logger.info("DI container created successfully")
        return container
    except Exception as e:
        logger.critical(f"Failed to create DI container: {e}", exc_info=True)
        raise


def setup_dependency_injection(app: FastAPI, container: AsyncContainer) -> None:
    """Setup Dishka integration with FastAPI."""
    try:
        logger.info("Setting up dependency injection...")
        setup_dishka(container, app)
        logger.info("Dependency injection setup completed")
    except Exception as e:
        logger.critical(f"Failed to setup dependency injection: {e}", exc_info=True)
        raise


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    registry: ServiceRegistry = app.state.service_registry
    logger.info(
        "Gateway started",
        mode=registry.mode.value,
        enabled=registry.enabled_names(),
        disabled=registry.disabled_names(),
    )
    yield
    await shutdown_services(app)


async def shutdown_services(app: FastAPI) -> None:
    """Close the DI container, which closes the outbound connection pool."""
    container: AsyncContainer | None = getattr(app.state, "di_container", None)
    if container is not None:
        await container.close()
    logger.info("Gateway shutdown completed")


class GatewayServer(uvicorn.Server):
    """uvicorn server whose shutdown signals end in a normal return.

    uvicorn re-raises captured SIGINT/SIGTERM after draining, which kills the
    process by signal instead of letting `serve` report exit status 0.
    """

    @contextmanager
    def capture_signals(self) -> Iterator[None]:
        if threading.current_thread() is not threading.main_thread():
            yield
            return
        original_handlers = {
            sig: signal.signal(sig, self.handle_exit) for sig in (signal.SIGINT, signal.SIGTERM)
        }
        try:
            yield
        finally:
            for sig, handler in original_handlers.items():
                signal.signal(sig, handler)
        if self._captured_signals:
            logger.info(
                "Gateway stopped by signal",
                signals=[signal.Signals(sig).name for sig in self._captured_signals],
            )


def serve(app: FastAPI, config: Settings) -> int:
    """
    Run uvicorn until SIGINT/SIGTERM and return the process exit status.

    uvicorn stops accepting connections on a signal and drains in-flight
    requests for up to SHUTDOWN_GRACE_SECONDS. An exception that reaches the
    event loop's handler is logged at critical level and stops the server
    with status 1.
    """
    server = GatewayServer(
        uvicorn.Config(
            app,
            host=config.HTTP_HOST,
            port=config.HTTP_PORT,
            timeout_graceful_shutdown=config.SHUTDOWN_GRACE_SECONDS,
            log_config=None,
        )
    )
    faults: list[dict[str, Any]] = []

    def handle_loop_exception(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        faults.append(context)
        logger.critical(
            "Unhandled error in event loop",
            detail=context.get("message"),
            exc_info=context.get("exception"),
        )
        server.should_exit = True

    async def run() -> None:
        asyncio.get_running_loop().set_exception_handler(handle_loop_exception)
        await server.serve()

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        # Interrupted before the signal handlers were installed
        return 0
    except Exception as e:
        logger.critical(f"Gateway terminated unexpectedly: {e}", exc_info=True)
        return 1

    if faults or not server.started:
        return 1
    return 0
