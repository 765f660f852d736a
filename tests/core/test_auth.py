import pytest
from httpx import AsyncClient
from jose import jwt

from feeledger.core.auth.jwt import create_access_token, decode_token
from feeledger.core.auth.models import Actor, ActorRole
from feeledger.core.config import settings
from feeledger.core.exceptions import AuthenticationError


class TestTokens:
    def test_round_trip(self):
        token = create_access_token("staff-7", ActorRole.STAFF.value, name="Ravi")
        payload = decode_token(token)

        assert payload["sub"] == "staff-7"
        assert payload["role"] == "STAFF"
        assert payload["name"] == "Ravi"

    def test_wrong_token_type(self):
        token = jwt.encode(
            {"sub": "1", "role": "STAFF", "type": "refresh"},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(AuthenticationError) as exc_info:
            decode_token(token)
        assert "expected access" in exc_info.value.message

    def test_bad_signature(self):
        token = jwt.encode(
            {"sub": "1", "role": "STAFF", "type": "access"},
            "some-other-secret",
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(AuthenticationError):
            decode_token(token)


class TestActor:
    def test_has_role(self):
        actor = Actor(id="1", role="SCHOOL_ADMIN")
        assert actor.has_role(ActorRole.SUPER_ADMIN, ActorRole.SCHOOL_ADMIN)
        assert not actor.has_role(ActorRole.STAFF)

    def test_display_name_falls_back_to_id(self):
        assert Actor(id="42", role="STAFF").display_name == "42"
        assert Actor(id="42", role="STAFF", name="Meera").display_name == "Meera"


class TestAuthDependencies:
    async def test_missing_header(self, client: AsyncClient):
        response = await client.get("/api/v1/students")
        assert response.status_code == 401
        assert response.json()["success"] is False

    async def test_malformed_header(self, client: AsyncClient):
        response = await client.get("/api/v1/students", headers={"Authorization": "Token abc"})
        assert response.status_code == 401

    async def test_unknown_role(self, client: AsyncClient):
        token = create_access_token("x", "JANITOR")
        response = await client.get(
            "/api/v1/students", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401
        assert "Unknown role" in response.json()["message"]

    async def test_role_required(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/api/v1/fee-structures",
            json={"name": "X", "academic_year": "2026-27", "components": []},
            headers=auth_headers(ActorRole.STAFF),
        )
        assert response.status_code == 403

    async def test_valid_token(self, client: AsyncClient, auth_headers):
        response = await client.get("/api/v1/students", headers=auth_headers(ActorRole.STAFF))
        assert response.status_code == 200
        assert response.json()["data"]["items"] == []
