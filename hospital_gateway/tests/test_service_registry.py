from __future__ import annotations

import pytest

from hospital_gateway.app.service_registry import ServiceRegistry, build_service_registry
from hospital_gateway.enums import GatewayMode
from hospital_gateway.error_handling import ConfigError
from hospital_gateway.models import ServiceEntry
from hospital_gateway.tests.conftest import make_settings


def _entry(name: str, prefix: str, enabled: bool = True) -> ServiceEntry:
    return ServiceEntry(
        name=name,
        display_name=name.title(),
        base_url=f"http://{name}.test",
        path_prefix=prefix,
        enabled=enabled,
    )


class TestBuildServiceRegistry:
    def test_registers_every_service_in_order(self):
        registry = build_service_registry(make_settings())

        assert [entry.name for entry in registry.list_all()] == [
            "auth",
            "doctors",
            "patients",
            "appointments",
            "medical-records",
            "prescriptions",
            "billing",
            "rooms",
            "departments",
            "notifications",
        ]

    def test_default_disabled_services(self):
        registry = build_service_registry(make_settings())

        assert registry.disabled_names() == ["rooms", "departments", "notifications"]
        assert registry.mode is GatewayMode.FULL_SYSTEM

    def test_doctor_only_mode_keeps_auth_and_doctors(self):
        registry = build_service_registry(make_settings(DOCTOR_ONLY_MODE=True))

        assert registry.enabled_names() == ["auth", "doctors"]
        assert registry.mode is GatewayMode.DOCTOR_ONLY
        assert registry.mode.value == "doctor-only-development"

    def test_base_url_trailing_slash_is_removed(self):
        registry = build_service_registry(make_settings(BILLING_SERVICE_URL="http://billing.test/"))

        billing = registry.get("billing")
        assert billing is not None
        assert billing.base_url == "http://billing.test"

    def test_auth_is_public_and_patients_profile_is_role_gated(self):
        registry = build_service_registry(make_settings())

        auth = registry.get("auth")
        patients = registry.get("patients")
        assert auth is not None and not auth.protected
        assert patients is not None
        assert patients.required_role_for("/api/patients/profile") == "patient"
        assert patients.required_role_for("/api/patients/42") is None

    def test_proxy_timeout_applies_to_every_entry(self):
        registry = build_service_registry(make_settings(PROXY_TIMEOUT_MS=2500))

        assert {entry.timeout_ms for entry in registry.list_all()} == {2500}


class TestRegister:
    def test_is_enabled_is_false_for_unknown_names(self):
        registry = ServiceRegistry()
        registry.register(_entry("doctors", "/api/doctors"))

        assert registry.is_enabled("doctors")
        assert not registry.is_enabled("pharmacy")

    def test_duplicate_name_is_rejected(self):
        registry = ServiceRegistry()
        registry.register(_entry("doctors", "/api/doctors"))

        with pytest.raises(ConfigError) as exc_info:
            registry.register(_entry("doctors", "/api/physicians"))

        assert exc_info.value.status_code == 500

    def test_prefix_collision_with_enabled_entry_is_rejected(self):
        registry = ServiceRegistry()
        registry.register(_entry("doctors", "/api/doctors"))

        with pytest.raises(ConfigError):
            registry.register(_entry("physicians", "/api/doctors/"))

    def test_prefix_of_disabled_entry_may_be_reused(self):
        registry = ServiceRegistry()
        registry.register(_entry("rooms", "/api/rooms", enabled=False))
        registry.register(_entry("wards", "/api/rooms"))

        assert registry.enabled_names() == ["wards"]

    def test_relative_prefix_is_rejected(self):
        registry = ServiceRegistry()

        with pytest.raises(ConfigError):
            registry.register(_entry("doctors", "api/doctors"))

    def test_shadowed_prefix_is_rejected(self):
        registry = ServiceRegistry()
        registry.register(_entry("patients", "/api/patients"))

        with pytest.raises(ConfigError):
            registry.register(_entry("patient-files", "/api/patients/files"))

    def test_list_all_is_a_snapshot(self):
        registry = ServiceRegistry()
        registry.register(_entry("doctors", "/api/doctors"))
        snapshot = registry.list_all()

        registry.register(_entry("billing", "/api/billing"))

        assert len(snapshot) == 1
        assert registry.route_prefixes() == ["/api/doctors", "/api/billing"]
