"""
Request router: maps an inbound path to a registered backend.

Matching is first-match-wins over the registry's route table, on a
path-segment boundary. Target URLs are ``base_url + rewrite(path)``.
"""

from __future__ import annotations

from hospital_gateway.app.service_registry import ServiceRegistry
from hospital_gateway.error_handling import raise_route_not_found, raise_service_disabled
from hospital_gateway.models import ServiceEntry, is_path_under


class RequestRouter:
    """Resolves request paths against an injected ServiceRegistry."""

    def __init__(self, registry: ServiceRegistry) -> None:
        self._registry = registry

    def find(self, path: str) -> ServiceEntry | None:
        for entry in self._registry.list_all():
            if is_path_under(entry.path_prefix, path):
                return entry
        return None

    def match(self, path: str, method: str = "GET") -> ServiceEntry:
        """Return the entry serving ``path`` or raise RouteNotFoundError."""
        entry = self.find(path)
        if entry is None:
            raise_route_not_found(
                operation="match_route",
                path=path,
                method=method,
                available_routes=self._registry.route_prefixes(),
            )
        return entry

    def ensure_enabled(self, entry: ServiceEntry) -> None:
        """Raise ServiceDisabledError for a disabled entry, before any network call."""
        if not entry.enabled:
            raise_service_disabled(
                operation="route_request",
                service_name=entry.name,
                display_name=entry.display_name,
                available_services=self._registry.enabled_names(),
            )

    @staticmethod
    def build_target_url(entry: ServiceEntry, path: str, query: str = "") -> str:
        url = f"{entry.base_url}{entry.rewrite_path(path)}"
        if query:
            url = f"{url}?{query}"
        return url

    @staticmethod
    def is_health_check(entry: ServiceEntry, path: str) -> bool:
        """True for ``<prefix>/health``, which is proxied to the backend's own /health."""
        return path.rstrip("/") == f"{entry.path_prefix.rstrip('/')}/health"

    @staticmethod
    def build_health_url(entry: ServiceEntry) -> str:
        return f"{entry.base_url}/health"
