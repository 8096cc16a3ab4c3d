"""
Configuration for the Hospital API Gateway.

Uses Pydantic settings for environment-based configuration. Per-service base
URLs accept both the prefixed ``GATEWAY_*`` names and the plain
``*_SERVICE_URL`` names shared with the rest of the deployment.
"""

from __future__ import annotations

import json
from typing import Annotated

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from hospital_gateway.enums import Environment, GatewayMode, IdentityVerificationMode


class Settings(BaseSettings):
    """Configuration settings for the Hospital API Gateway."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="GATEWAY_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Service identity
    SERVICE_NAME: str = "Hospital Management API Gateway"
    SERVICE_VERSION: str = "1.0.0"

    ENVIRONMENT: Environment = Field(
        default=Environment.DEVELOPMENT,
        validation_alias=AliasChoices("GATEWAY_ENVIRONMENT", "ENVIRONMENT"),
        description="Runtime environment for the service",
    )

    # HTTP server configuration
    HTTP_HOST: str = Field(default="0.0.0.0", description="HTTP server host")
    HTTP_PORT: int = Field(
        default=3100,
        validation_alias=AliasChoices("GATEWAY_HTTP_PORT", "PORT"),
        description="HTTP server port",
    )
    SHUTDOWN_GRACE_SECONDS: int = Field(
        default=30, description="Seconds allowed for in-flight requests on shutdown"
    )

    # Logging configuration
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    # CORS configuration
    CORS_ORIGINS: Annotated[list[str], NoDecode] = Field(
        default=["http://localhost:3000"],
        validation_alias=AliasChoices("GATEWAY_CORS_ORIGINS", "ALLOWED_ORIGINS"),
        description="Allowed CORS origins, comma-separated or a JSON list",
    )
    CORS_ALLOW_CREDENTIALS: bool = Field(
        default=True, description="Allow credentials in CORS requests"
    )
    CORS_ALLOW_METHODS: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        description="Allowed HTTP methods for CORS",
    )
    CORS_ALLOW_HEADERS: list[str] = Field(
        default=["*"], description="Allowed headers for CORS requests"
    )

    # Rate limiting configuration
    RATE_LIMIT_MAX: int = Field(
        default=1000, description="Requests accepted per client IP within one window"
    )
    RATE_LIMIT_WINDOW_SECONDS: int = Field(
        default=900, description="Rate limit window in seconds"
    )
    RATE_LIMIT_STORAGE_URI: str | None = Field(
        default=None,
        description="limits storage URI (e.g. redis://redis:6379); in-memory when unset",
    )

    # Outbound HTTP
    PROXY_TIMEOUT_MS: int = Field(
        default=10_000, description="Default per-call timeout for proxied backend requests"
    )
    MAX_CONNECTIONS: int = Field(default=100, description="Outbound connection pool size")
    MAX_KEEPALIVE_CONNECTIONS: int = Field(
        default=20, description="Idle keep-alive connections kept in the pool"
    )
    HEALTH_PROBE_TIMEOUT_SECONDS: float = Field(
        default=5.0, description="Timeout for backend /health probes"
    )

    # Service URLs
    AUTH_SERVICE_URL: str = Field(
        default="http://auth-service:3001",
        validation_alias=AliasChoices("GATEWAY_AUTH_SERVICE_URL", "AUTH_SERVICE_URL"),
    )
    DOCTOR_SERVICE_URL: str = Field(
        default="http://doctor-service:3002",
        validation_alias=AliasChoices("GATEWAY_DOCTOR_SERVICE_URL", "DOCTOR_SERVICE_URL"),
    )
    PATIENT_SERVICE_URL: str = Field(
        default="http://patient-service:3003",
        validation_alias=AliasChoices("GATEWAY_PATIENT_SERVICE_URL", "PATIENT_SERVICE_URL"),
    )
    APPOINTMENT_SERVICE_URL: str = Field(
        default="http://appointment-service:3004",
        validation_alias=AliasChoices(
            "GATEWAY_APPOINTMENT_SERVICE_URL", "APPOINTMENT_SERVICE_URL"
        ),
    )
    MEDICAL_RECORDS_SERVICE_URL: str = Field(
        default="http://medical-records-service:3006",
        validation_alias=AliasChoices(
            "GATEWAY_MEDICAL_RECORDS_SERVICE_URL", "MEDICAL_RECORDS_SERVICE_URL"
        ),
    )
    PRESCRIPTION_SERVICE_URL: str = Field(
        default="http://prescription-service:3007",
        validation_alias=AliasChoices(
            "GATEWAY_PRESCRIPTION_SERVICE_URL", "PRESCRIPTION_SERVICE_URL"
        ),
    )
    BILLING_SERVICE_URL: str = Field(
        default="http://billing-service:3008",
        validation_alias=AliasChoices("GATEWAY_BILLING_SERVICE_URL", "BILLING_SERVICE_URL"),
    )
    ROOM_SERVICE_URL: str = Field(
        default="http://room-service:3009",
        validation_alias=AliasChoices("GATEWAY_ROOM_SERVICE_URL", "ROOM_SERVICE_URL"),
    )
    DEPARTMENT_SERVICE_URL: str = Field(
        default="http://department-service:3010",
        validation_alias=AliasChoices(
            "GATEWAY_DEPARTMENT_SERVICE_URL", "DEPARTMENT_SERVICE_URL"
        ),
    )
    NOTIFICATION_SERVICE_URL: str = Field(
        default="http://notification-service:3011",
        validation_alias=AliasChoices(
            "GATEWAY_NOTIFICATION_SERVICE_URL", "NOTIFICATION_SERVICE_URL"
        ),
    )

    DISABLED_SERVICES: list[str] = Field(
        default_factory=lambda: ["rooms", "departments", "notifications"],
        description="Registered services that answer 503 without a backend call",
    )
    DOCTOR_ONLY_MODE: bool = Field(
        default=False,
        validation_alias=AliasChoices("GATEWAY_DOCTOR_ONLY_MODE", "DOCTOR_ONLY_MODE"),
        description="Only auth and doctors stay enabled",
    )

    # Identity provider
    IDENTITY_PROVIDER_URL: str = Field(
        default="http://identity-provider:8000",
        validation_alias=AliasChoices("GATEWAY_IDENTITY_PROVIDER_URL", "SUPABASE_URL"),
    )
    IDENTITY_SERVICE_KEY: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices(
            "GATEWAY_IDENTITY_SERVICE_KEY", "SUPABASE_SERVICE_ROLE_KEY"
        ),
        description="Service credential presented to the identity provider",
    )
    IDENTITY_VERIFICATION_MODE: IdentityVerificationMode = Field(
        default=IdentityVerificationMode.REMOTE,
        description="remote: ask the identity provider; jwt: verify locally",
    )
    IDENTITY_JWT_SECRET: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("GATEWAY_IDENTITY_JWT_SECRET", "SUPABASE_JWT_SECRET"),
    )
    IDENTITY_JWT_ALGORITHM: str = "HS256"
    IDENTITY_JWT_AUDIENCE: str = "authenticated"
    IDENTITY_TIMEOUT_SECONDS: float = Field(
        default=5.0, description="Timeout for identity verification and profile lookups"
    )
    PROFILE_TABLE: str = Field(default="profiles", description="Profile table name")

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, v: str | list[str]) -> list[str]:
        """Accept `http://a,http://b` as well as `["http://a", "http://b"]`."""
        if not isinstance(v, str):
            return v
        if v.strip().startswith("["):
            return json.loads(v)
        return [origin.strip() for origin in v.split(",") if origin.strip()]

    def is_development(self) -> bool:
        return self.ENVIRONMENT == Environment.DEVELOPMENT

    def is_production(self) -> bool:
        return self.ENVIRONMENT == Environment.PRODUCTION

    @property
    def mode(self) -> GatewayMode:
        return GatewayMode.DOCTOR_ONLY if self.DOCTOR_ONLY_MODE else GatewayMode.FULL_SYSTEM


# Global settings instance
settings = Settings()
