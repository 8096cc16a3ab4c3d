"""Routing configuration models: service entries and role-gated sub-routes."""

from __future__ import annotations

from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, Field


def identity_rewrite(path: str) -> str:
    """Default path rewrite: the backend expects the path it was called with."""
    return path


def is_path_under(prefix: str, path: str) -> bool:
    """True when ``path`` equals ``prefix`` or continues it at a segment boundary."""
    prefix = prefix.rstrip("/")
    if not prefix:
        return path.startswith("/")
    return path == prefix or path.startswith(prefix + "/")


class RoleRule(BaseModel):
    """A sub-route inside a service entry that only one role may reach."""

    model_config = ConfigDict(frozen=True)

    path_prefix: str
    required_role: str


class ServiceEntry(BaseModel):
    """
    One backend reachable through the gateway.

    Immutable for the process lifetime; read by the router on every request.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str
    base_url: str
    path_prefix: str
    enabled: bool = True
    timeout_ms: int = Field(default=10_000, gt=0)
    protected: bool = True
    role_rules: tuple[RoleRule, ...] = ()
    rewrite: Callable[[str], str] = Field(default=identity_rewrite, exclude=True)

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    def rewrite_path(self, path: str) -> str:
        return self.rewrite(path)

    def required_role_for(self, path: str) -> str | None:
        """Return the role a path requires, or None when any authenticated role may pass."""
        for rule in self.role_rules:
            if is_path_under(rule.path_prefix, path):
                return rule.required_role
        return None
