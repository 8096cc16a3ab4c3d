"""
hospital_gateway.enums - Enums shared across the gateway.
"""

from __future__ import annotations

from enum import Enum


class Environment(str, Enum):
    """Defines application environments."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class GatewayMode(str, Enum):
    """Operating mode reported by the discovery endpoints."""

    FULL_SYSTEM = "full-system"
    DOCTOR_ONLY = "doctor-only-development"


class IdentityVerificationMode(str, Enum):
    """How bearer credentials are verified."""

    REMOTE = "remote"
    JWT = "jwt"


class ErrorCode(str, Enum):
    """Machine-readable error codes carried in every error envelope."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    AUTHORIZATION_ERROR = "AUTHORIZATION_ERROR"
    ROUTE_NOT_FOUND = "ROUTE_NOT_FOUND"
    SERVICE_DISABLED = "SERVICE_DISABLED"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AuthFailureReason(str, Enum):
    """Why the auth gate rejected a request."""

    NO_TOKEN = "no_token"
    INVALID_TOKEN = "invalid_token"
    PROFILE_MISSING = "profile_missing"
    ACCOUNT_INACTIVE = "account_inactive"


class ServiceHealthStatus(str, Enum):
    """Result of probing a backend's /health endpoint."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"
