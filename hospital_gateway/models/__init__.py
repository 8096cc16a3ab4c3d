"""
Data models for the Hospital API Gateway.

Configuration objects (service entries) and per-request identity objects;
nothing here is persisted.
"""

from hospital_gateway.models.errors import ErrorDetail
from hospital_gateway.models.identity import (
    IDENTITY_HEADERS,
    AuthContext,
    UserProfile,
    VerifiedIdentity,
)
from hospital_gateway.models.routing import (
    RoleRule,
    ServiceEntry,
    identity_rewrite,
    is_path_under,
)

__all__ = [
    "IDENTITY_HEADERS",
    "AuthContext",
    "ErrorDetail",
    "RoleRule",
    "ServiceEntry",
    "UserProfile",
    "VerifiedIdentity",
    "identity_rewrite",
    "is_path_under",
]
