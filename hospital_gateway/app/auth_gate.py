"""
Auth gate: turns a bearer credential into an AuthContext or rejects the request.

Steps run in order and the first failure wins:
missing/malformed header, unverifiable token, missing profile, inactive account.
"""

from __future__ import annotations

from fastapi import Request

from hospital_gateway.enums import AuthFailureReason
from hospital_gateway.error_handling import (
    AuthError,
    raise_authentication_error,
    raise_authorization_error,
)
from hospital_gateway.logging_utils import create_service_logger
from hospital_gateway.models import AuthContext
from hospital_gateway.protocols import (
    IdentityVerifierProtocol,
    MetricsProtocol,
    ProfileStoreProtocol,
)

logger = create_service_logger("gateway.auth_gate")


def extract_bearer_token(authorization: str | None) -> str:
    """Return the token of an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        raise_authentication_error("extract_bearer_token", AuthFailureReason.NO_TOKEN)

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise_authentication_error("extract_bearer_token", AuthFailureReason.NO_TOKEN)

    return parts[1]


class AuthGate:
    """Authenticates protected requests; holds no per-request state."""

    def __init__(
        self,
        verifier: IdentityVerifierProtocol,
        profile_store: ProfileStoreProtocol,
        metrics: MetricsProtocol,
    ) -> None:
        self._verifier = verifier
        self._profile_store = profile_store
        self._metrics = metrics

    async def authenticate(self, request: Request) -> AuthContext:
        try:
            context = await self._resolve(request)
        except AuthError as exc:
            # Reason only: the credential itself is never logged
            logger.warning(
                "Authentication failed",
                reason=exc.reason.value,
                method=request.method,
                path=request.url.path,
            )
            self._metrics.auth_attempts_total.labels(outcome=exc.reason.value).inc()
            raise

        logger.info(
            "Authenticated request",
            user_id=context.user_id,
            role=context.role,
            method=request.method,
            path=request.url.path,
        )
        self._metrics.auth_attempts_total.labels(outcome="success").inc()
        return context

    async def _resolve(self, request: Request) -> AuthContext:
        token = extract_bearer_token(request.headers.get("Authorization"))

        identity = await self._verifier.verify(token)
        if identity is None:
            raise_authentication_error("verify_token", AuthFailureReason.INVALID_TOKEN)

        profile = await self._profile_store.get_profile(identity.user_id)
        if profile is None:
            raise_authentication_error("load_profile", AuthFailureReason.PROFILE_MISSING)
        if not profile.is_active:
            raise_authentication_error("load_profile", AuthFailureReason.ACCOUNT_INACTIVE)

        return AuthContext.from_profile(identity, profile)

    def require_role(self, context: AuthContext, role: str) -> None:
        """Exact role match, else AuthorizationError (403)."""
        if context.role != role:
            logger.warning(
                "Authorization denied",
                user_id=context.user_id,
                role=context.role,
                required_role=role,
            )
            raise_authorization_error("require_role", required_role=role)
