"""
Shared fixtures for gateway tests.

Backends live at ``http://<name>.test`` and are mocked with respx; identity
verification and profile lookups are stubbed through TestGatewayProvider.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from dishka import AsyncContainer, make_async_container
from dishka.integrations.fastapi import FastapiProvider
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from prometheus_client import CollectorRegistry

from hospital_gateway.app.di import RequestContextProvider
from hospital_gateway.app.main import create_app
from hospital_gateway.app.service_registry import ServiceRegistry, build_service_registry
from hospital_gateway.config import Settings
from hospital_gateway.enums import Environment
from hospital_gateway.models import UserProfile
from hospital_gateway.tests.test_provider import (
    StubIdentityVerifier,
    StubProfileStore,
    TestGatewayProvider,
)

DOCTOR_TOKEN = "doctor-token"
PATIENT_TOKEN = "patient-token"
INACTIVE_TOKEN = "inactive-token"
ORPHAN_TOKEN = "orphan-token"

PROFILES = (
    UserProfile(
        id="user-doctor",
        email="ada@hospital.test",
        full_name="Dr. Ada Lovelace",
        role="doctor",
    ),
    UserProfile(
        id="user-patient",
        email="grace@hospital.test",
        full_name="Grace Hopper",
        role="patient",
    ),
    UserProfile(
        id="user-inactive",
        email="gone@hospital.test",
        full_name="Former Staff",
        role="doctor",
        is_active=False,
    ),
)

TOKENS = {
    DOCTOR_TOKEN: "user-doctor",
    PATIENT_TOKEN: "user-patient",
    INACTIVE_TOKEN: "user-inactive",
    # Valid credential without a profile row
    ORPHAN_TOKEN: "user-orphan",
}


def make_settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "ENVIRONMENT": Environment.TESTING,
        "AUTH_SERVICE_URL": "http://auth.test",
        "DOCTOR_SERVICE_URL": "http://doctors.test",
        "PATIENT_SERVICE_URL": "http://patients.test",
        "APPOINTMENT_SERVICE_URL": "http://appointments.test",
        "MEDICAL_RECORDS_SERVICE_URL": "http://medical-records.test",
        "PRESCRIPTION_SERVICE_URL": "http://prescriptions.test",
        "BILLING_SERVICE_URL": "http://billing.test",
        "ROOM_SERVICE_URL": "http://rooms.test",
        "DEPARTMENT_SERVICE_URL": "http://departments.test",
        "NOTIFICATION_SERVICE_URL": "http://notifications.test",
        "IDENTITY_PROVIDER_URL": "http://identity.test",
        "IDENTITY_SERVICE_KEY": "service-role-key",
        "DISABLED_SERVICES": ["rooms", "departments", "notifications"],
        "DOCTOR_ONLY_MODE": False,
    }
    values.update(overrides)
    return Settings(**values)


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def test_settings() -> Settings:
    return make_settings()


@pytest.fixture
def service_registry(test_settings: Settings) -> ServiceRegistry:
    return build_service_registry(test_settings)


@pytest.fixture
def identity_verifier() -> StubIdentityVerifier:
    return StubIdentityVerifier(TOKENS)


@pytest.fixture
def metrics_registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
async def container(
    test_settings: Settings,
    service_registry: ServiceRegistry,
    identity_verifier: StubIdentityVerifier,
    metrics_registry: CollectorRegistry,
) -> AsyncIterator[AsyncContainer]:
    """Create test container with stubbed identity and isolated metrics."""
    container = make_async_container(
        TestGatewayProvider(
            settings=test_settings,
            registry=service_registry,
            verifier=identity_verifier,
            profile_store=StubProfileStore(PROFILES),
            metrics_registry=metrics_registry,
        ),
        RequestContextProvider(),
        FastapiProvider(),  # Required for Request context
    )
    yield container
    await container.close()


@pytest.fixture
def app(
    test_settings: Settings, service_registry: ServiceRegistry, container: AsyncContainer
) -> FastAPI:
    return create_app(config=test_settings, registry=service_registry, container=container)


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
