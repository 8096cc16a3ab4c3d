"""
Service registry for the gateway.

Holds the ordered route table of ServiceEntry records. Built once at startup
from Settings and injected wherever it is needed; never mutated afterwards.
"""

from __future__ import annotations

from hospital_gateway.config import Settings
from hospital_gateway.enums import GatewayMode
from hospital_gateway.error_handling import raise_configuration_error
from hospital_gateway.logging_utils import create_service_logger
from hospital_gateway.models import RoleRule, ServiceEntry, is_path_under

logger = create_service_logger("gateway.service_registry")

DOCTOR_ONLY_SERVICES = frozenset({"auth", "doctors"})


class ServiceRegistry:
    """Authoritative list of backend services, in registration order."""

    def __init__(self, mode: GatewayMode = GatewayMode.FULL_SYSTEM) -> None:
        self.mode = mode
        self._entries: list[ServiceEntry] = []

    def register(self, entry: ServiceEntry) -> None:
        """
        Append an entry to the route table.

        Raises ConfigError when the name is taken, the prefix is not an
        absolute path, or the prefix collides with an enabled entry.
        """
        if not entry.path_prefix.startswith("/"):
            raise_configuration_error(
                operation="register_service",
                message=f"Path prefix for '{entry.name}' must start with '/'",
                serviceName=entry.name,
                pathPrefix=entry.path_prefix,
            )
        if self.get(entry.name) is not None:
            raise_configuration_error(
                operation="register_service",
                message=f"Service '{entry.name}' is already registered",
                serviceName=entry.name,
            )
        for existing in self._entries:
            if not existing.enabled:
                continue
            if existing.path_prefix.rstrip("/") == entry.path_prefix.rstrip("/"):
                raise_configuration_error(
                    operation="register_service",
                    message=(
                        f"Path prefix '{entry.path_prefix}' of '{entry.name}' collides "
                        f"with enabled service '{existing.name}'"
                    ),
                    serviceName=entry.name,
                    pathPrefix=entry.path_prefix,
                )
            if entry.enabled and is_path_under(existing.path_prefix, entry.path_prefix):
                # A shadowed entry could never be reached under first-match-wins.
                raise_configuration_error(
                    operation="register_service",
                    message=(
                        f"Path prefix '{entry.path_prefix}' of '{entry.name}' is shadowed "
                        f"by '{existing.path_prefix}' registered earlier"
                    ),
                    serviceName=entry.name,
                    pathPrefix=entry.path_prefix,
                )

        self._entries.append(entry)
        logger.info(
            "Service registered",
            service=entry.name,
            url=entry.base_url,
            prefix=entry.path_prefix,
            enabled=entry.enabled,
        )

    def list_all(self) -> tuple[ServiceEntry, ...]:
        return tuple(self._entries)

    def get(self, name: str) -> ServiceEntry | None:
        for entry in self._entries:
            if entry.name == name:
                return entry
        return None

    def is_enabled(self, name: str) -> bool:
        entry = self.get(name)
        return entry is not None and entry.enabled

    def enabled_names(self) -> list[str]:
        return [entry.name for entry in self._entries if entry.enabled]

    def disabled_names(self) -> list[str]:
        return [entry.name for entry in self._entries if not entry.enabled]

    def route_prefixes(self) -> list[str]:
        return [entry.path_prefix for entry in self._entries]


# (name, display name, settings attribute, path prefix, protected, role rules)
_SERVICE_TABLE: tuple[tuple[str, str, str, str, bool, tuple[RoleRule, ...]], ...] = (
    ("auth", "Auth", "AUTH_SERVICE_URL", "/api/auth", False, ()),
    ("doctors", "Doctor", "DOCTOR_SERVICE_URL", "/api/doctors", True, ()),
    (
        "patients",
        "Patient",
        "PATIENT_SERVICE_URL",
        "/api/patients",
        True,
        (RoleRule(path_prefix="/api/patients/profile", required_role="patient"),),
    ),
    ("appointments", "Appointment", "APPOINTMENT_SERVICE_URL", "/api/appointments", True, ()),
    (
        "medical-records",
        "Medical records",
        "MEDICAL_RECORDS_SERVICE_URL",
        "/api/medical-records",
        True,
        (),
    ),
    ("prescriptions", "Prescription", "PRESCRIPTION_SERVICE_URL", "/api/prescriptions", True, ()),
    ("billing", "Billing", "BILLING_SERVICE_URL", "/api/billing", True, ()),
    ("rooms", "Room", "ROOM_SERVICE_URL", "/api/rooms", True, ()),
    ("departments", "Department", "DEPARTMENT_SERVICE_URL", "/api/departments", True, ()),
    (
        "notifications",
        "Notification",
        "NOTIFICATION_SERVICE_URL",
        "/api/notifications",
        True,
        (),
    ),
)


def build_service_registry(settings: Settings) -> ServiceRegistry:
    """Create the route table from configuration."""
    registry = ServiceRegistry(mode=settings.mode)
    disabled = {name.strip() for name in settings.DISABLED_SERVICES}
    unknown = disabled - {row[0] for row in _SERVICE_TABLE}
    if unknown:
        logger.warning("Ignoring unknown names in DISABLED_SERVICES", names=sorted(unknown))

    for name, display_name, url_setting, prefix, protected, role_rules in _SERVICE_TABLE:
        enabled = name not in disabled
        if settings.DOCTOR_ONLY_MODE and name not in DOCTOR_ONLY_SERVICES:
            enabled = False
        registry.register(
            ServiceEntry(
                name=name,
                display_name=display_name,
                base_url=str(getattr(settings, url_setting)).rstrip("/"),
                path_prefix=prefix,
                enabled=enabled,
                timeout_ms=settings.PROXY_TIMEOUT_MS,
                protected=protected,
                role_rules=role_rules,
            )
        )

    logger.info(
        "Service registry initialized",
        mode=registry.mode.value,
        enabled=registry.enabled_names(),
        disabled=registry.disabled_names(),
    )
    return registry
