from __future__ import annotations

import time
from collections.abc import AsyncIterator

import httpx
import jwt
import pytest
from httpx import Response
from respx import MockRouter

from hospital_gateway.enums import IdentityVerificationMode
from hospital_gateway.error_handling import ConfigError
from hospital_gateway.implementations.identity_verifier import (
    JwtIdentityVerifier,
    SupabaseIdentityVerifier,
)
from hospital_gateway.tests.conftest import make_settings

USER_URL = "http://identity.test/auth/v1/user"
JWT_SECRET = "test-jwt-secret-with-enough-length"


@pytest.fixture
async def http_client() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture
def remote_verifier(http_client: httpx.AsyncClient) -> SupabaseIdentityVerifier:
    return SupabaseIdentityVerifier(http_client, make_settings())


@pytest.fixture
def jwt_verifier() -> JwtIdentityVerifier:
    return JwtIdentityVerifier(
        make_settings(
            IDENTITY_VERIFICATION_MODE=IdentityVerificationMode.JWT,
            IDENTITY_JWT_SECRET=JWT_SECRET,
        )
    )


def make_token(**claims: object) -> str:
    payload: dict[str, object] = {
        "sub": "user-42",
        "email": "nurse@hospital.test",
        "aud": "authenticated",
        "exp": int(time.time()) + 300,
    }
    payload.update(claims)
    payload = {key: value for key, value in payload.items() if value is not None}
    return jwt.encode(payload, JWT_SECRET, algorithm="HS256")


class TestSupabaseIdentityVerifier:
    @pytest.mark.asyncio
    async def test_valid_token(
        self, remote_verifier: SupabaseIdentityVerifier, respx_mock: MockRouter
    ):
        route = respx_mock.get(USER_URL).mock(
            return_value=Response(200, json={"id": "user-42", "email": "nurse@hospital.test"})
        )

        identity = await remote_verifier.verify("caller-token")

        assert identity is not None
        assert identity.user_id == "user-42"
        assert identity.email == "nurse@hospital.test"
        sent = route.calls.last.request
        assert sent.headers["apikey"] == "service-role-key"
        assert sent.headers["authorization"] == "Bearer caller-token"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [401, 403, 500])
    async def test_rejected_token(
        self,
        remote_verifier: SupabaseIdentityVerifier,
        respx_mock: MockRouter,
        status_code: int,
    ):
        respx_mock.get(USER_URL).mock(return_value=Response(status_code, json={"msg": "nope"}))

        assert await remote_verifier.verify("caller-token") is None

    @pytest.mark.asyncio
    async def test_provider_unreachable(
        self, remote_verifier: SupabaseIdentityVerifier, respx_mock: MockRouter
    ):
        respx_mock.get(USER_URL).mock(side_effect=httpx.ConnectError("refused"))

        assert await remote_verifier.verify("caller-token") is None

    @pytest.mark.asyncio
    async def test_response_without_user_id(
        self, remote_verifier: SupabaseIdentityVerifier, respx_mock: MockRouter
    ):
        respx_mock.get(USER_URL).mock(return_value=Response(200, json={"email": "x@y.z"}))

        assert await remote_verifier.verify("caller-token") is None


class TestJwtIdentityVerifier:
    @pytest.mark.asyncio
    async def test_valid_token(self, jwt_verifier: JwtIdentityVerifier):
        identity = await jwt_verifier.verify(make_token())

        assert identity is not None
        assert identity.user_id == "user-42"
        assert identity.email == "nurse@hospital.test"

    @pytest.mark.asyncio
    async def test_expired_token(self, jwt_verifier: JwtIdentityVerifier):
        assert await jwt_verifier.verify(make_token(exp=int(time.time()) - 60)) is None

    @pytest.mark.asyncio
    async def test_wrong_audience(self, jwt_verifier: JwtIdentityVerifier):
        assert await jwt_verifier.verify(make_token(aud="anon")) is None

    @pytest.mark.asyncio
    async def test_missing_subject(self, jwt_verifier: JwtIdentityVerifier):
        assert await jwt_verifier.verify(make_token(sub=None)) is None

    @pytest.mark.asyncio
    async def test_missing_expiry(self, jwt_verifier: JwtIdentityVerifier):
        assert await jwt_verifier.verify(make_token(exp=None)) is None

    @pytest.mark.asyncio
    async def test_wrong_signature(self, jwt_verifier: JwtIdentityVerifier):
        forged = jwt.encode(
            {"sub": "user-42", "aud": "authenticated", "exp": int(time.time()) + 300},
            "another-secret-of-the-same-length!",
            algorithm="HS256",
        )

        assert await jwt_verifier.verify(forged) is None

    @pytest.mark.asyncio
    async def test_garbage_token(self, jwt_verifier: JwtIdentityVerifier):
        assert await jwt_verifier.verify("not-a-jwt") is None

    def test_secret_is_required(self):
        with pytest.raises(ConfigError):
            JwtIdentityVerifier(make_settings(IDENTITY_VERIFICATION_MODE="jwt"))
