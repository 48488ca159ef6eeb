"""
Tests for the Supabase Auth REST client against a mocked transport.
"""
import json

import httpx
import pytest

from services.supabase_auth import SupabaseAuthClient, SupabaseAuthError


def make_client(handler, **kwargs) -> SupabaseAuthClient:
    return SupabaseAuthClient(
        "https://project.supabase.co/",
        "anon-key",
        kwargs.pop("service_role_key", "service-key"),
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestSupabaseAuthClient:

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_sign_up_posts_to_gotrue(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["apikey"] = request.headers["apikey"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"user": {"id": "uid-1"}, "session": None})

        auth = make_client(handler)
        user = await auth.sign_up("a@b.co", "Passw0rd!", data={"role": "client"})
        await auth.aclose()

        assert user == {"id": "uid-1"}
        assert seen["url"] == "https://project.supabase.co/auth/v1/signup"
        assert seen["apikey"] == "anon-key"
        assert seen["body"]["data"] == {"role": "client"}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_password_grant(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["grant_type"] == "password"
            return httpx.Response(200, json={"access_token": "at", "user": {"id": "uid"}})

        auth = make_client(handler)
        session = await auth.sign_in_with_password("a@b.co", "x")
        await auth.aclose()
        assert session["access_token"] == "at"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_error_message_surfaces(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error_description": "Invalid login credentials"})

        auth = make_client(handler)
        with pytest.raises(SupabaseAuthError) as exc_info:
            await auth.sign_in_with_password("a@b.co", "x")
        await auth.aclose()

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Invalid login credentials"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_network_failure_is_502(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("boom", request=request)

        auth = make_client(handler)
        with pytest.raises(SupabaseAuthError) as exc_info:
            await auth.get_user("token")
        await auth.aclose()
        assert exc_info.value.status_code == 502

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unconfigured_client_is_503(self):
        auth = SupabaseAuthClient("", "")
        assert auth.configured is False
        with pytest.raises(SupabaseAuthError) as exc_info:
            await auth.get_user("token")
        await auth.aclose()
        assert exc_info.value.status_code == 503

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_admin_delete_uses_service_role(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["auth"] = request.headers["authorization"]
            return httpx.Response(200)

        auth = make_client(handler)
        await auth.admin_delete_user("uid-9")
        await auth.aclose()

        assert seen == {
            "method": "DELETE",
            "path": "/auth/v1/admin/users/uid-9",
            "auth": "Bearer service-key",
        }
