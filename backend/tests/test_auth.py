"""
Storefront Backend — Authentication Tests
===========================================

What:  Password hashing, token issue/verify, and the bearer-token guard on
       the protected /api/users routes.

What we test:
    ✅ bcrypt hashes verify and never equal the plain text
    ✅ Tokens round-trip their claims; expired and tampered tokens fail
    ✅ No token → 401, bad token → 400, handler not reached
"""

from datetime import timedelta
from uuid import uuid4

import pytest

from app.config import Settings
from app.exceptions import AuthenticationError, InvalidTokenError
from app.middleware.auth import authenticate, extract_bearer_token
from app.services.auth_service import AuthService


class TestPasswordHashing:

    def test_hash_is_not_plain_text_and_verifies(self, auth_service):
        hashed = auth_service.hash_password("hunter2")
        assert hashed != "hunter2"
        assert auth_service.verify_password("hunter2", hashed)
        assert not auth_service.verify_password("hunter3", hashed)

    @pytest.mark.asyncio
    async def test_async_variants(self, auth_service):
        hashed = await auth_service.hash_password_async("hunter2")
        assert await auth_service.verify_password_async("hunter2", hashed)


class TestTokens:

    def test_round_trip_claims(self, auth_service):
        user_id = str(uuid4())
        token = auth_service.create_access_token({"id": user_id, "role": "admin"})
        claims = auth_service.decode_token(token)
        assert claims["id"] == user_id
        assert claims["role"] == "admin"
        assert "exp" in claims

    def test_expired_token_rejected(self, auth_service):
        token = auth_service.create_access_token(
            {"id": str(uuid4())}, expires_delta=timedelta(minutes=-1)
        )
        with pytest.raises(InvalidTokenError):
            auth_service.decode_token(token)

    def test_token_signed_with_other_secret_rejected(self, auth_service):
        other = AuthService(Settings(jwt_secret="someone-else", bcrypt_rounds=4))
        token = other.create_access_token({"id": str(uuid4())})
        with pytest.raises(InvalidTokenError):
            auth_service.decode_token(token)

    def test_garbage_token_rejected(self, auth_service):
        with pytest.raises(InvalidTokenError):
            auth_service.decode_token("not-a-jwt")


class TestBearerGuard:

    @pytest.mark.parametrize("header", [None, "", "Bearer ", "Bearer    "])
    def test_missing_token(self, auth_service, header):
        assert extract_bearer_token(header) is None
        with pytest.raises(AuthenticationError):
            authenticate(auth_service, header)

    def test_valid_token_gives_context(self, auth_service):
        user_id = uuid4()
        token = auth_service.create_access_token({"id": str(user_id), "role": "user"})
        identity = authenticate(auth_service, f"Bearer {token}")
        assert identity.user_id == user_id
        assert identity.role == "user"

    def test_token_without_uuid_id_rejected(self, auth_service):
        token = auth_service.create_access_token({"id": "42"})
        with pytest.raises(InvalidTokenError):
            authenticate(auth_service, f"Bearer {token}")

    @pytest.mark.asyncio
    async def test_protected_route_without_token(self, test_client):
        response = await test_client.get("/api/users/profile")
        assert response.status_code == 401
        assert response.json()["message"] == "Access denied, please login"

    @pytest.mark.asyncio
    async def test_protected_route_with_tampered_token(self, test_client, register_user, auth_service):
        token = (await register_user())["token"]
        other = auth_service.create_access_token({"id": str(uuid4())})
        header, _, signature = token.split(".")
        tampered = ".".join([header, other.split(".")[1], signature])
        response = await test_client.get(
            "/api/users/profile", headers={"Authorization": f"Bearer {tampered}"}
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Token not valid, please login again"

    @pytest.mark.asyncio
    async def test_protected_route_with_expired_token(self, test_client, auth_service):
        token = auth_service.create_access_token(
            {"id": str(uuid4())}, expires_delta=timedelta(seconds=-5)
        )
        response = await test_client.put(
            "/api/users/update",
            json={"username": "mallory"},
            headers={"Authorization": f"Bearer {token}"},
        )
        assert response.status_code == 400
