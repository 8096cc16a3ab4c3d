"""
Factory functions that build an ErrorDetail and raise the matching GatewayError.

Call sites pass the operation that failed plus any extra fields; extra fields
end up at the top level of the JSON envelope.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, NoReturn

from hospital_gateway.enums import AuthFailureReason, ErrorCode
from hospital_gateway.error_handling.gateway_error import (
    AuthError,
    AuthorizationError,
    ConfigError,
    RouteNotFoundError,
    ServiceDisabledError,
    UpstreamUnavailableError,
)
from hospital_gateway.models.errors import ErrorDetail

_AUTH_FAILURE_TEXT: dict[AuthFailureReason, tuple[str, str]] = {
    AuthFailureReason.NO_TOKEN: (
        "Access token required",
        "Authorization header with a Bearer token is required",
    ),
    AuthFailureReason.INVALID_TOKEN: (
        "Invalid token",
        "The access token is invalid or has expired",
    ),
    AuthFailureReason.PROFILE_MISSING: (
        "User profile not found",
        "No profile exists for the authenticated user",
    ),
    AuthFailureReason.ACCOUNT_INACTIVE: (
        "Account is inactive",
        "The user account has been deactivated",
    ),
}


def create_error_detail(
    error_code: ErrorCode,
    status_code: int,
    error: str,
    message: str,
    operation: str,
    service_name: str | None = None,
    **details: Any,
) -> ErrorDetail:
    return ErrorDetail(
        error_code=error_code,
        status_code=status_code,
        error=error,
        message=message,
        timestamp=datetime.now(UTC),
        operation=operation,
        service_name=service_name,
        details=details,
    )


def raise_configuration_error(operation: str, message: str, **details: Any) -> NoReturn:
    raise ConfigError(
        create_error_detail(
            ErrorCode.CONFIGURATION_ERROR,
            500,
            "Invalid service configuration",
            message,
            operation,
            **details,
        )
    )


def raise_authentication_error(
    operation: str, reason: AuthFailureReason, **details: Any
) -> NoReturn:
    """Raise a 401 AuthError whose text is fixed per failure reason."""
    error, message = _AUTH_FAILURE_TEXT[reason]
    raise AuthError(
        create_error_detail(
            ErrorCode.AUTHENTICATION_ERROR,
            401,
            error,
            message,
            operation,
            reason=reason.value,
            **details,
        ),
        reason=reason,
    )


def raise_authorization_error(operation: str, required_role: str, **details: Any) -> NoReturn:
    raise AuthorizationError(
        create_error_detail(
            ErrorCode.AUTHORIZATION_ERROR,
            403,
            "Access denied",
            f"Access denied, {required_role} required",
            operation,
            requiredRole=required_role,
            **details,
        )
    )


def route_not_found_detail(
    operation: str, path: str, method: str, available_routes: list[str]
) -> ErrorDetail:
    return create_error_detail(
        ErrorCode.ROUTE_NOT_FOUND,
        404,
        "Route not found",
        f"No route matches {method} {path}",
        operation,
        path=path,
        method=method,
        availableRoutes=available_routes,
    )


def raise_route_not_found(
    operation: str, path: str, method: str, available_routes: list[str]
) -> NoReturn:
    raise RouteNotFoundError(route_not_found_detail(operation, path, method, available_routes))


def raise_service_disabled(
    operation: str, service_name: str, display_name: str, available_services: list[str]
) -> NoReturn:
    raise ServiceDisabledError(
        create_error_detail(
            ErrorCode.SERVICE_DISABLED,
            503,
            "Service not implemented yet",
            f"{display_name} service is temporarily unavailable",
            operation,
            service_name=service_name,
            availableServices=available_services,
        )
    )


def raise_upstream_unavailable(
    operation: str, service_name: str, display_name: str, **details: Any
) -> NoReturn:
    raise UpstreamUnavailableError(
        create_error_detail(
            ErrorCode.UPSTREAM_UNAVAILABLE,
            503,
            f"{display_name} service unavailable",
            f"The {display_name.lower()} service is currently unavailable. "
            "Please try again later.",
            operation,
            service_name=service_name,
            **details,
        )
    )
