"""Profile store backed by the identity provider's REST interface."""

from __future__ import annotations

import httpx
from pydantic import ValidationError

from hospital_gateway.config import Settings
from hospital_gateway.error_handling import raise_upstream_unavailable
from hospital_gateway.logging_utils import create_service_logger
from hospital_gateway.models import UserProfile
from hospital_gateway.protocols import ProfileStoreProtocol

logger = create_service_logger("gateway.profile_store")

PROFILE_COLUMNS = "id,email,full_name,role,is_active"


class SupabaseProfileStore(ProfileStoreProtocol):
    """Reads one row of the profile table by user id.

    Transport failures and non-200 answers surface as a 503 for the identity
    service: the gateway cannot decide on access without the profile.
    """

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._client = client
        base_url = settings.IDENTITY_PROVIDER_URL.rstrip("/")
        self._table_url = f"{base_url}/rest/v1/{settings.PROFILE_TABLE}"
        self._service_key = settings.IDENTITY_SERVICE_KEY.get_secret_value()
        self._timeout = settings.IDENTITY_TIMEOUT_SECONDS

    async def get_profile(self, user_id: str) -> UserProfile | None:
        try:
            response = await self._client.get(
                self._table_url,
                params={"id": f"eq.{user_id}", "select": PROFILE_COLUMNS},
                headers={
                    "apikey": self._service_key,
                    "Authorization": f"Bearer {self._service_key}",
                    "Accept": "application/json",
                },
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            logger.error(
                "Profile lookup failed",
                user_id=user_id,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise_upstream_unavailable(
                operation="load_profile", service_name="identity", display_name="Identity"
            )

        if response.status_code != 200:
            logger.error(
                "Profile lookup returned unexpected status",
                user_id=user_id,
                status_code=response.status_code,
            )
            raise_upstream_unavailable(
                operation="load_profile", service_name="identity", display_name="Identity"
            )

        try:
            rows = response.json()
        except ValueError:
            logger.error("Profile lookup returned a non-JSON body", user_id=user_id)
            raise_upstream_unavailable(
                operation="load_profile", service_name="identity", display_name="Identity"
            )

        if not isinstance(rows, list) or not rows:
            return None

        try:
            return UserProfile.model_validate(rows[0])
        except ValidationError as exc:
            logger.warning(
                "Profile record is incomplete", user_id=user_id, errors=exc.error_count()
            )
            return None
