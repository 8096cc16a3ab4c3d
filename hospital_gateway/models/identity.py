"""Identity models resolved by the auth gate for one request."""

from __future__ import annotations

from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, field_validator

USER_ID_HEADER = "x-user-id"
USER_EMAIL_HEADER = "x-user-email"
USER_ROLE_HEADER = "x-user-role"
USER_NAME_HEADER = "x-user-name"

IDENTITY_HEADERS = (USER_ID_HEADER, USER_EMAIL_HEADER, USER_ROLE_HEADER, USER_NAME_HEADER)


class VerifiedIdentity(BaseModel):
    """Identity returned by the identity verifier for a valid credential."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    email: str = ""


class UserProfile(BaseModel):
    """Profile record keyed by the verified identity."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    email: str = ""
    full_name: str = ""
    role: str
    is_active: bool = True

    @field_validator("email", "full_name", mode="before")
    @classmethod
    def _null_text_is_empty(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("is_active", mode="before")
    @classmethod
    def _null_is_active(cls, value: object) -> object:
        # Rows created before the column existed carry NULL
        return True if value is None else value


class AuthContext(BaseModel):
    """Authenticated caller. Lives for one request and is never persisted."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    email: str
    role: str
    display_name: str
    is_active: bool

    @classmethod
    def from_profile(cls, identity: VerifiedIdentity, profile: UserProfile) -> AuthContext:
        return cls(
            user_id=identity.user_id,
            email=profile.email or identity.email,
            role=profile.role,
            display_name=profile.full_name,
            is_active=profile.is_active,
        )

    def to_headers(self) -> dict[str, str]:
        """Trusted identity headers attached to the proxied request."""
        # Header values must be ASCII; non-ASCII names are percent-encoded.
        name = self.display_name if self.display_name.isascii() else quote(self.display_name)
        return {
            USER_ID_HEADER: self.user_id,
            USER_EMAIL_HEADER: self.email,
            USER_ROLE_HEADER: self.role,
            USER_NAME_HEADER: name,
        }
