"""
Exception hierarchy for the gateway.

Every failure the gateway reports to a client is a ``GatewayError`` carrying an
``ErrorDetail``; the FastAPI handlers turn it into the JSON envelope. Nothing
below is meant to escape a request unconverted.
"""

from __future__ import annotations

from hospital_gateway.enums import AuthFailureReason
from hospital_gateway.models.errors import ErrorDetail


class GatewayError(Exception):
    """Base exception wrapping a structured ErrorDetail."""

    def __init__(self, error_detail: ErrorDetail) -> None:
        super().__init__(error_detail.message)
        self.error_detail = error_detail

    @property
    def status_code(self) -> int:
        return self.error_detail.status_code

    @property
    def error_code(self) -> str:
        return self.error_detail.error_code.value

    @property
    def operation(self) -> str:
        return self.error_detail.operation

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.error_detail.message}"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(error_code={self.error_code!r}, "
            f"status_code={self.status_code}, message={self.error_detail.message!r})"
        )


class ConfigError(GatewayError):
    """Invalid or missing service registration at boot. Fatal."""


class AuthError(GatewayError):
    """The caller could not be authenticated (401)."""

    def __init__(self, error_detail: ErrorDetail, reason: AuthFailureReason) -> None:
        super().__init__(error_detail)
        self.reason = reason


class AuthorizationError(GatewayError):
    """The caller is authenticated but lacks the required role (403)."""


class RouteNotFoundError(GatewayError):
    """No registered prefix matches the request path (404)."""


class ServiceDisabledError(GatewayError):
    """The matched service is registered but disabled (503, no network call)."""


class UpstreamUnavailableError(GatewayError):
    """The backend could not be reached in time (503, single attempt)."""
