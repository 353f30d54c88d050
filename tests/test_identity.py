import json

import httpx
import pytest

from cafe.core.config import get_settings
from cafe.services.identity import (
    IdentityProviderError,
    MockIdentityProvider,
    SupabaseIdentityProvider,
)

SUPABASE_URL = "https://demo.supabase.co"


class TestMockIdentityProvider:
    async def test_sign_up_sign_in_verify(self):
        provider = MockIdentityProvider()

        user = await provider.create_user("Sam@Cafe.com", "pw", {"name": "Sam", "role": "admin"})
        session = await provider.sign_in("sam@cafe.com", "pw")
        resolved = await provider.verify_token(session.access_token)

        assert user.email == "sam@cafe.com"
        assert resolved.id == user.id
        assert resolved.metadata == {"name": "Sam", "role": "admin"}

    async def test_duplicate_email(self):
        provider = MockIdentityProvider()
        await provider.create_user("sam@cafe.com", "pw")

        with pytest.raises(IdentityProviderError) as exc:
            await provider.create_user("SAM@cafe.com", "other")

        assert exc.value.already_exists is True

    @pytest.mark.parametrize("email, password", [("sam@cafe.com", "wrong"), ("nobody@cafe.com", "pw")])
    async def test_bad_credentials(self, email, password):
        provider = MockIdentityProvider()
        await provider.create_user("sam@cafe.com", "pw")

        with pytest.raises(IdentityProviderError, match="Invalid login credentials"):
            await provider.sign_in(email, password)

    async def test_unknown_and_revoked_tokens(self):
        provider = MockIdentityProvider()
        await provider.create_user("sam@cafe.com", "pw")
        session = await provider.sign_in("sam@cafe.com", "pw")

        assert await provider.verify_token("nope") is None
        provider.revoke(session.access_token)
        assert await provider.verify_token(session.access_token) is None

    async def test_password_not_stored_in_clear(self):
        provider = MockIdentityProvider()
        await provider.create_user("sam@cafe.com", "hunter2")

        assert "hunter2" not in json.dumps(provider._accounts)


@pytest.fixture
def supabase_settings(monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings, "supabase_url", SUPABASE_URL)
    monkeypatch.setattr(settings, "supabase_service_role_key", "service-key")
    monkeypatch.setattr(settings, "supabase_anon_key", "anon-key")
    return settings


def make_provider(handler) -> SupabaseIdentityProvider:
    client = httpx.AsyncClient(base_url=SUPABASE_URL, transport=httpx.MockTransport(handler))
    return SupabaseIdentityProvider(client=client)


USER_PAYLOAD = {"id": "u-1", "email": "sam@cafe.com", "user_metadata": {"name": "Sam", "role": "employee"}}


class TestSupabaseIdentityProvider:
    def test_requires_configuration(self, monkeypatch):
        monkeypatch.setattr(get_settings(), "supabase_url", None)

        with pytest.raises(ValueError, match="SUPABASE_URL"):
            SupabaseIdentityProvider()

    async def test_create_user(self, supabase_settings):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=USER_PAYLOAD)

        user = await make_provider(handler).create_user("sam@cafe.com", "pw", {"name": "Sam"})

        assert user.id == "u-1"
        assert user.metadata["role"] == "employee"
        assert seen["path"] == "/auth/v1/admin/users"
        assert seen["auth"] == "Bearer service-key"
        assert seen["body"]["email_confirm"] is True
        assert seen["body"]["user_metadata"] == {"name": "Sam"}

    async def test_create_user_duplicate(self, supabase_settings):
        def handler(request):
            return httpx.Response(
                422,
                json={"error_code": "email_exists", "msg": "A user with this email address has already been registered"},
            )

        with pytest.raises(IdentityProviderError) as exc:
            await make_provider(handler).create_user("sam@cafe.com", "pw")

        assert exc.value.already_exists is True
        assert exc.value.status_code == 422

    async def test_create_user_other_rejection(self, supabase_settings):
        def handler(request):
            return httpx.Response(400, json={"msg": "Password should be at least 6 characters"})

        with pytest.raises(IdentityProviderError) as exc:
            await make_provider(handler).create_user("sam@cafe.com", "pw")

        assert exc.value.already_exists is False
        assert exc.value.message == "Password should be at least 6 characters"

    async def test_sign_in(self, supabase_settings):
        def handler(request):
            assert request.url.path == "/auth/v1/token"
            assert request.url.params["grant_type"] == "password"
            assert request.headers["apikey"] == "anon-key"
            return httpx.Response(200, json={"access_token": "jwt", "expires_in": 3600, "user": USER_PAYLOAD})

        session = await make_provider(handler).sign_in("sam@cafe.com", "pw")

        assert session.access_token == "jwt"
        assert session.expires_in == 3600
        assert session.user.email == "sam@cafe.com"

    async def test_sign_in_rejected(self, supabase_settings):
        def handler(request):
            return httpx.Response(400, json={"error": "invalid_grant", "error_description": "Invalid login credentials"})

        with pytest.raises(IdentityProviderError, match="Invalid login credentials"):
            await make_provider(handler).sign_in("sam@cafe.com", "nope")

    async def test_verify_token(self, supabase_settings):
        def handler(request):
            if request.headers["Authorization"] == "Bearer good":
                return httpx.Response(200, json=USER_PAYLOAD)
            return httpx.Response(401, json={"msg": "invalid JWT"})

        provider = make_provider(handler)

        assert (await provider.verify_token("good")).id == "u-1"
        assert await provider.verify_token("bad") is None

    async def test_transport_error(self, supabase_settings):
        def handler(request):
            raise httpx.ConnectError("boom", request=request)

        provider = make_provider(handler)

        with pytest.raises(IdentityProviderError, match="unreachable") as exc:
            await provider.verify_token("good")
        assert exc.value.unreachable is True
        assert await provider.health_check() is False

    async def test_rejection_is_not_unreachable(self, supabase_settings):
        def handler(request):
            return httpx.Response(400, json={"error_description": "Invalid login credentials"})

        with pytest.raises(IdentityProviderError) as exc:
            await make_provider(handler).sign_in("sam@cafe.com", "nope")

        assert exc.value.unreachable is False

    async def test_health_check(self, supabase_settings):
        provider = make_provider(lambda request: httpx.Response(200, json={"name": "GoTrue"}))
        assert await provider.health_check() is True
