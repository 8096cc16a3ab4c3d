from __future__ import annotations

import pytest

from hospital_gateway.config import Settings
from hospital_gateway.enums import Environment, GatewayMode, IdentityVerificationMode


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "PORT",
        "ENVIRONMENT",
        "ALLOWED_ORIGINS",
        "AUTH_SERVICE_URL",
        "DOCTOR_ONLY_MODE",
        "SUPABASE_URL",
        "SUPABASE_SERVICE_ROLE_KEY",
        "SUPABASE_JWT_SECRET",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = Settings(_env_file=None)

    assert config.HTTP_PORT == 3100
    assert config.ENVIRONMENT == Environment.DEVELOPMENT
    assert config.CORS_ORIGINS == ["http://localhost:3000"]
    assert config.RATE_LIMIT_MAX == 1000
    assert config.RATE_LIMIT_WINDOW_SECONDS == 900
    assert config.PROXY_TIMEOUT_MS == 10_000
    assert config.DISABLED_SERVICES == ["rooms", "departments", "notifications"]
    assert config.IDENTITY_VERIFICATION_MODE == IdentityVerificationMode.REMOTE
    assert config.mode == GatewayMode.FULL_SYSTEM
    assert config.is_development()


def test_plain_deployment_variable_names(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("AUTH_SERVICE_URL", "http://auth.internal:9000")
    monkeypatch.setenv("ALLOWED_ORIGINS", '["https://portal.hospital.test"]')
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.test")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-key")

    config = Settings(_env_file=None)

    assert config.HTTP_PORT == 8080
    assert config.AUTH_SERVICE_URL == "http://auth.internal:9000"
    assert config.CORS_ORIGINS == ["https://portal.hospital.test"]
    assert config.IDENTITY_PROVIDER_URL == "https://project.supabase.test"
    assert config.IDENTITY_SERVICE_KEY.get_secret_value() == "service-key"


def test_prefixed_names_are_accepted(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("GATEWAY_HTTP_PORT", "9100")
    monkeypatch.setenv("GATEWAY_RATE_LIMIT_MAX", "5")

    config = Settings(_env_file=None)

    assert config.HTTP_PORT == 9100
    assert config.RATE_LIMIT_MAX == 5


def test_doctor_only_mode(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("DOCTOR_ONLY_MODE", "true")

    config = Settings(_env_file=None)

    assert config.DOCTOR_ONLY_MODE is True
    assert config.mode == GatewayMode.DOCTOR_ONLY


def test_production_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ENVIRONMENT", "production")

    config = Settings(_env_file=None)

    assert config.is_production()
    assert not config.is_development()


def test_comma_separated_allowed_origins(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://localhost:3000, https://portal.hospital.test")

    config = Settings(_env_file=None)

    assert config.CORS_ORIGINS == ["http://localhost:3000", "https://portal.hospital.test"]
