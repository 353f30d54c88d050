import asyncio

import pytest

from cafe.services.identity import IdentityProviderError
from tests.conftest import PASSWORD


def signup_body(**overrides):
    body = {"email": "sam@cafe.com", "password": PASSWORD, "name": "Sam", "role": "employee"}
    body.update(overrides)
    return body


class TestSignup:
    def test_creates_account_and_profile(self, client, store):
        response = client.post("/auth/signup", json=signup_body())

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "User created successfully"
        assert body["user"]["email"] == "sam@cafe.com"
        assert body["user"]["role"] == "employee"

        profile = asyncio.run(store.get(f"user:{body['user']['id']}"))
        assert profile["name"] == "Sam"
        assert profile["role"] == "employee"
        assert profile["created_at"]

    def test_duplicate_email_is_conflict(self, client):
        client.post("/auth/signup", json=signup_body())
        response = client.post("/auth/signup", json=signup_body(name="Another Sam"))

        assert response.status_code == 409
        assert response.json() == {"success": False, "error": "User with this email already exists"}

    def test_unknown_role_rejected(self, client):
        response = client.post("/auth/signup", json=signup_body(role="manager"))

        assert response.status_code == 400
        assert "Invalid role" in response.json()["error"]

    def test_missing_field_is_invalid_input(self, client):
        body = signup_body()
        del body["name"]

        response = client.post("/auth/signup", json=body)

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_malformed_email_rejected(self, client):
        response = client.post("/auth/signup", json=signup_body(email="not-an-email"))
        assert response.status_code == 400


class TestLogin:
    def test_returns_token_and_profile(self, client, admin):
        assert admin["user"]["role"] == "admin"
        assert admin["user"]["name"] == "Ada Admin"
        assert admin["headers"]["Authorization"].startswith("Bearer ")

    def test_wrong_password_unauthorized(self, client):
        client.post("/auth/signup", json=signup_body())

        response = client.post("/auth/login", json={"email": "sam@cafe.com", "password": "nope"})

        assert response.status_code == 401
        assert response.json()["error"].startswith("Login failed")

    def test_missing_password_is_invalid_input(self, client):
        response = client.post("/auth/login", json={"email": "sam@cafe.com"})
        assert response.status_code == 400

    def test_falls_back_to_provider_metadata_without_profile(self, client, identity):
        asyncio.run(identity.create_user("ghost@cafe.com", PASSWORD, {"name": "Ghost"}))

        response = client.post("/auth/login", json={"email": "ghost@cafe.com", "password": PASSWORD})

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["name"] == "Ghost"
        assert user["role"] == "employee"


class TestMe:
    def test_returns_stored_profile(self, client, employee):
        response = client.get("/auth/me", headers=employee["headers"])

        assert response.status_code == 200
        assert response.json()["user"]["email"] == "emma@cafe.com"
        assert response.json()["user"]["role"] == "employee"

    def test_no_token(self, client):
        response = client.get("/auth/me")

        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized - No token provided"

    def test_invalid_token(self, client):
        response = client.get("/auth/me", headers={"Authorization": "Bearer bogus"})

        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized - Invalid token"

    def test_non_bearer_scheme(self, client):
        response = client.get("/auth/me", headers={"Authorization": "Basic abc"})
        assert response.status_code == 401

    def test_revoked_token(self, client, identity, employee):
        token = employee["headers"]["Authorization"].split()[1]
        identity.revoke(token)

        response = client.get("/auth/me", headers=employee["headers"])

        assert response.status_code == 401

    def test_missing_profile_is_not_found(self, client, identity):
        asyncio.run(identity.create_user("ghost@cafe.com", PASSWORD, {"name": "Ghost"}))
        token = client.post(
            "/auth/login", json={"email": "ghost@cafe.com", "password": PASSWORD}
        ).json()["access_token"]

        response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 404
        assert response.json()["error"] == "User profile not found"


class TestIdentityProviderOutage:
    @pytest.fixture
    def outage(self, monkeypatch, identity):
        async def unreachable(*args, **kwargs):
            raise IdentityProviderError("Identity provider unreachable: timeout", unreachable=True)

        def _break(method):
            monkeypatch.setattr(identity, method, unreachable)

        return _break

    def test_token_check_outage_is_internal_error(self, client, employee, outage):
        outage("verify_token")

        response = client.get("/orders", headers=employee["headers"])

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Identity provider unavailable"}

    def test_rejected_token_check_is_still_unauthorized(self, client, employee, monkeypatch, identity):
        async def rejected(token):
            raise IdentityProviderError("invalid JWT", status_code=401)

        monkeypatch.setattr(identity, "verify_token", rejected)

        assert client.get("/orders", headers=employee["headers"]).status_code == 401

    def test_login_outage_is_internal_error(self, client, outage):
        client.post("/auth/signup", json=signup_body())
        outage("sign_in")

        response = client.post("/auth/login", json={"email": "sam@cafe.com", "password": PASSWORD})

        assert response.status_code == 500

    def test_signup_outage_is_internal_error(self, client, store, outage):
        outage("create_user")

        response = client.post("/auth/signup", json=signup_body())

        assert response.status_code == 500
        assert asyncio.run(store.get_by_prefix("user:")) == []
