"""Identity verifier implementations.

``SupabaseIdentityVerifier`` asks the identity provider who owns a token;
``JwtIdentityVerifier`` validates the token signature locally with PyJWT.
Both return None for any credential they cannot vouch for.
"""

from __future__ import annotations

from typing import Any

import httpx
import jwt

from hospital_gateway.config import Settings
from hospital_gateway.error_handling import raise_configuration_error
from hospital_gateway.logging_utils import create_service_logger
from hospital_gateway.models import VerifiedIdentity
from hospital_gateway.protocols import IdentityVerifierProtocol

logger = create_service_logger("gateway.identity_verifier")


class SupabaseIdentityVerifier(IdentityVerifierProtocol):
    """Remote verification via ``GET {provider}/auth/v1/user``."""

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._client = client
        self._user_url = f"{settings.IDENTITY_PROVIDER_URL.rstrip('/')}/auth/v1/user"
        self._api_key = settings.IDENTITY_SERVICE_KEY.get_secret_value()
        self._timeout = settings.IDENTITY_TIMEOUT_SECONDS

    async def verify(self, token: str) -> VerifiedIdentity | None:
        try:
            response = await self._client.get(
                self._user_url,
                headers={"apikey": self._api_key, "Authorization": f"Bearer {token}"},
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "Identity provider request failed",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return None

        if response.status_code != 200:
            logger.info("Identity provider rejected token", status_code=response.status_code)
            return None

        try:
            payload: Any = response.json()
        except ValueError:
            logger.warning("Identity provider returned a non-JSON body")
            return None

        user_id = payload.get("id") if isinstance(payload, dict) else None
        if not isinstance(user_id, str) or not user_id:
            logger.warning("Identity provider response carries no user id")
            return None
        return VerifiedIdentity(user_id=user_id, email=payload.get("email") or "")


class JwtIdentityVerifier(IdentityVerifierProtocol):
    """Local verification of provider-issued JWTs with a shared secret."""

    def __init__(self, settings: Settings) -> None:
        secret = settings.IDENTITY_JWT_SECRET
        if secret is None or not secret.get_secret_value():
            raise_configuration_error(
                operation="create_identity_verifier",
                message="IDENTITY_JWT_SECRET is required for jwt identity verification",
            )
        self._secret = secret.get_secret_value()
        self._algorithm = settings.IDENTITY_JWT_ALGORITHM
        self._audience = settings.IDENTITY_JWT_AUDIENCE

    async def verify(self, token: str) -> VerifiedIdentity | None:
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired token")
            return None
        except jwt.InvalidTokenError as exc:
            logger.info("Rejected invalid token", error_type=type(exc).__name__)
            return None

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            return None
        email = payload.get("email")
        return VerifiedIdentity(user_id=subject, email=email if isinstance(email, str) else "")
