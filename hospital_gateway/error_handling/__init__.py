"""Error handling utilities for the gateway."""

from hospital_gateway.error_handling.factories import (
    create_error_detail,
    raise_authentication_error,
    raise_authorization_error,
    raise_configuration_error,
    raise_route_not_found,
    raise_service_disabled,
    raise_upstream_unavailable,
    route_not_found_detail,
)
from hospital_gateway.error_handling.gateway_error import (
    AuthError,
    AuthorizationError,
    ConfigError,
    GatewayError,
    RouteNotFoundError,
    ServiceDisabledError,
    UpstreamUnavailableError,
)

__all__ = [
    "AuthError",
    "AuthorizationError",
    "ConfigError",
    "GatewayError",
    "RouteNotFoundError",
    "ServiceDisabledError",
    "UpstreamUnavailableError",
    "create_error_detail",
    "raise_authentication_error",
    "raise_authorization_error",
    "raise_configuration_error",
    "raise_route_not_found",
    "raise_service_disabled",
    "raise_upstream_unavailable",
    "route_not_found_detail",
]
