"""
Tests for /api/v1/auth endpoints with Supabase Auth mocked.

Tests: signup validation and row creation, login status gate, session
relay, rate limiting.
"""
import pytest
from sqlalchemy import func, select

from db_models import Client, Freelancer, KYCRecord, User, Wallet
from domain.enums import UserRole, UserStatus
from services.supabase_auth import SupabaseAuthError
from tests.conftest import auth_headers, create_user

SIGNUP = {
    "email": "Chioma@Example.com",
    "password": "Str0ngPass",
    "full_name": "  Chioma Obi ",
    "phone": "+2348031234567",
    "role": "freelancer",
}


class TestSignup:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_creates_user_profile_wallet_and_kyc(self, client, db_session, mock_auth_client):
        mock_auth_client.sign_up.return_value = {"id": "auth-uid-1", "email": "chioma@example.com"}

        response = await client.post("/api/v1/auth/signup", json=SIGNUP)

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "User registered successfully"
        assert body["data"]["user"] == {
            "id": "auth-uid-1",
            "email": "chioma@example.com",
            "full_name": "Chioma Obi",
            "role": "freelancer",
            "status": UserStatus.PENDING_KYC.value,
        }

        assert await db_session.get(User, "auth-uid-1") is not None
        assert await db_session.get(Wallet, "auth-uid-1") is not None
        for model in (Freelancer, KYCRecord):
            found = (await db_session.execute(
                select(func.count()).select_from(model).where(model.user_id == "auth-uid-1")
            )).scalar_one()
            assert found == 1

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_client_role_gets_client_profile(self, client, db_session, mock_auth_client):
        mock_auth_client.sign_up.return_value = {"id": "auth-uid-2"}

        response = await client.post("/api/v1/auth/signup", json={**SIGNUP, "role": "client"})

        assert response.status_code == 201
        profile = (await db_session.execute(select(Client).where(Client.user_id == "auth-uid-2"))).scalar_one()
        assert profile.total_orders == 0

    @pytest.mark.api
    @pytest.mark.asyncio
    @pytest.mark.parametrize("override", [
        {"email": "not-an-email"},
        {"password": "short1A"},
        {"password": "alllowercase1"},
        {"phone": "080-123"},
        {"full_name": "A"},
        {"role": "superuser"},
    ])
    async def test_invalid_input_is_400(self, client, mock_auth_client, override):
        response = await client.post("/api/v1/auth/signup", json={**SIGNUP, **override})

        assert response.status_code == 400
        assert response.json()["error"] == "Validation failed"
        assert response.json()["details"]
        mock_auth_client.sign_up.assert_not_called()

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_existing_email_is_409(self, client, db_session, mock_auth_client):
        await create_user(db_session, email="chioma@example.com", role=UserRole.CLIENT)

        response = await client.post("/api/v1/auth/signup", json=SIGNUP)

        assert response.status_code == 409
        assert response.json()["error"] == "User with this email already exists"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_supabase_rejection_is_400(self, client, mock_auth_client):
        mock_auth_client.sign_up.side_effect = SupabaseAuthError("User already registered", status_code=422)

        response = await client.post("/api/v1/auth/signup", json=SIGNUP)

        assert response.status_code == 400
        assert response.json()["error"] == "User already registered"


class TestLogin:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_active_user_gets_session(self, client, client_user, mock_auth_client):
        mock_auth_client.sign_in_with_password.return_value = {
            "access_token": "at",
            "refresh_token": "rt",
            "expires_at": 1_900_000_000,
            "user": {"id": client_user.id},
        }

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": client_user.email, "password": "whatever"},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user"]["id"] == client_user.id
        assert data["session"] == {"access_token": "at", "refresh_token": "rt", "expires_at": 1_900_000_000}

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_pending_kyc_user_is_403(self, client, db_session, mock_auth_client):
        user = await create_user(db_session, email="new@example.com", role=UserRole.CLIENT, status=UserStatus.PENDING_KYC)
        mock_auth_client.sign_in_with_password.return_value = {"access_token": "at", "user": {"id": user.id}}

        response = await client.post("/api/v1/auth/login", json={"email": user.email, "password": "x"})

        assert response.status_code == 403
        assert response.json()["error"] == "Account is not active. Please complete KYC verification."

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_bad_credentials_is_401(self, client, mock_auth_client):
        mock_auth_client.sign_in_with_password.side_effect = SupabaseAuthError("Invalid login credentials")

        response = await client.post("/api/v1/auth/login", json={"email": "a@b.co", "password": "x"})

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid credentials"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_sixth_attempt_is_rate_limited(self, client, mock_auth_client):
        mock_auth_client.sign_in_with_password.side_effect = SupabaseAuthError("Invalid login credentials")
        payload = {"email": "a@b.co", "password": "x"}

        for _ in range(5):
            assert (await client.post("/api/v1/auth/login", json=payload)).status_code == 401
        response = await client.post("/api/v1/auth/login", json=payload)

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "900"
        assert response.json()["error"] == "Too many requests, please try again later"


class TestSessionRelay:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_refresh(self, client, mock_auth_client):
        mock_auth_client.refresh_session.return_value = {"access_token": "new", "refresh_token": "rt2"}

        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": "rt"})

        assert response.status_code == 200
        assert response.json()["data"]["session"]["access_token"] == "new"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_logout_tolerates_supabase_failure(self, client, client_user, mock_auth_client):
        mock_auth_client.sign_out.side_effect = SupabaseAuthError("session not found", status_code=404)

        response = await client.post("/api/v1/auth/logout", headers=auth_headers(client_user))

        assert response.status_code == 200

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_forgot_password_redirects_to_frontend(self, client, mock_auth_client):
        response = await client.post("/api/v1/auth/forgot-password", json={"email": "a@b.co"})

        assert response.status_code == 200
        args, kwargs = mock_auth_client.reset_password_for_email.call_args
        assert args[0] == "a@b.co"
        assert kwargs["redirect_to"].endswith("/reset-password")

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_update_me(self, client, client_user):
        response = await client.put(
            "/api/v1/auth/me",
            json={"full_name": "Ada Lovelace", "metadata": {"timezone": "Africa/Lagos"}},
            headers=auth_headers(client_user),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["full_name"] == "Ada Lovelace"
        assert data["metadata"] == {"timezone": "Africa/Lagos"}
