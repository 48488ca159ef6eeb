"""
Tests for bearer-token authentication middleware.

Tests: token decoding, get_current_user status gate, remote verification
fallback, role guards.
"""
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from config import settings
from deps import require_admin, require_freelancer
from domain.enums import UserRole, UserStatus
from domain.errors import PermissionDeniedError, UnauthorizedError
from middleware.auth import (
    _parse_bearer_token,
    decode_access_token,
    get_current_user,
    resolve_token_subject,
)
from services.supabase_auth import SupabaseAuthError
from tests.conftest import auth_headers, create_user, issue_access_token


class TestTokenDecoding:

    @pytest.mark.unit
    def test_round_trip_subject(self):
        token = issue_access_token(user_id="user-1", email="a@b.co")
        claims = decode_access_token(token)
        assert claims["sub"] == "user-1"
        assert claims["aud"] == "authenticated"

    @pytest.mark.unit
    def test_expired_token_rejected(self):
        past = datetime.now(timezone.utc) - timedelta(minutes=5)
        token = jwt.encode(
            {"sub": "user-1", "aud": "authenticated", "exp": int(past.timestamp())},
            settings.supabase_jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(UnauthorizedError) as exc_info:
            decode_access_token(token)
        assert exc_info.value.status_code == 401

    @pytest.mark.unit
    def test_wrong_secret_rejected(self):
        token = jwt.encode(
            {"sub": "user-1", "aud": "authenticated", "exp": 9_999_999_999},
            "some-other-secret",
            algorithm="HS256",
        )
        with pytest.raises(UnauthorizedError):
            decode_access_token(token)

    @pytest.mark.unit
    def test_wrong_audience_rejected(self):
        token = jwt.encode(
            {"sub": "user-1", "aud": "anon", "exp": 9_999_999_999},
            settings.supabase_jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(UnauthorizedError):
            decode_access_token(token)

    @pytest.mark.unit
    @pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer ", "Basic Zm9v"])
    def test_bad_authorization_headers(self, header):
        assert _parse_bearer_token(header) is None

    @pytest.mark.unit
    def test_bearer_scheme_case_insensitive(self):
        assert _parse_bearer_token("bearer abc.def") == "abc.def"


class TestRemoteVerification:

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_falls_back_to_supabase_without_secret(self, monkeypatch, mock_auth_client):
        monkeypatch.setattr(settings, "supabase_jwt_secret", "")
        mock_auth_client.get_user.return_value = {"id": "remote-user"}

        assert await resolve_token_subject("opaque", mock_auth_client) == "remote-user"
        mock_auth_client.get_user.assert_awaited_once_with("opaque")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_remote_rejection_is_401(self, monkeypatch, mock_auth_client):
        monkeypatch.setattr(settings, "supabase_jwt_secret", "")
        mock_auth_client.get_user.side_effect = SupabaseAuthError("invalid JWT", status_code=401)

        with pytest.raises(UnauthorizedError):
            await resolve_token_subject("opaque", mock_auth_client)


class TestCurrentUser:

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_active_user_resolved(self, db_session, client_user, mock_auth_client):
        token = issue_access_token(user_id=client_user.id)
        user = await get_current_user(token=token, db=db_session, auth_client=mock_auth_client)
        assert user.id == client_user.id

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_subject_is_401(self, db_session, mock_auth_client):
        token = issue_access_token(user_id="ghost")
        with pytest.raises(UnauthorizedError) as exc_info:
            await get_current_user(token=token, db=db_session, auth_client=mock_auth_client)
        assert exc_info.value.message == "User not found"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_suspended_user_is_403(self, db_session, mock_auth_client):
        user = await create_user(db_session, email="s@example.com", role=UserRole.CLIENT, status=UserStatus.SUSPENDED)
        token = issue_access_token(user_id=user.id)
        with pytest.raises(PermissionDeniedError) as exc_info:
            await get_current_user(token=token, db=db_session, auth_client=mock_auth_client)
        assert exc_info.value.message == "Account is not active"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_pending_kyc_user_can_authenticate(self, db_session, mock_auth_client):
        user = await create_user(db_session, email="p@example.com", role=UserRole.CLIENT, status=UserStatus.PENDING_KYC)
        token = issue_access_token(user_id=user.id)
        resolved = await get_current_user(token=token, db=db_session, auth_client=mock_auth_client)
        assert resolved.id == user.id


class TestRoleGuards:

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_admin_passes_every_guard(self, admin_user):
        assert await require_admin(user=admin_user) is admin_user
        assert await require_freelancer(user=admin_user) is admin_user

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_client_blocked_from_freelancer_routes(self, client_user):
        with pytest.raises(PermissionDeniedError) as exc_info:
            await require_freelancer(user=client_user)
        assert exc_info.value.message == "Insufficient permissions"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_invalid_token_over_http(self, client):
        response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Invalid or expired token"}

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_me_returns_profile_and_wallet(self, client, freelancer_user):
        response = await client.get("/api/v1/auth/me", headers=auth_headers(freelancer_user))
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == freelancer_user.id
        assert data["freelancer"]["user_id"] == freelancer_user.id
        assert data["wallet"] == {"balance_cents": 0, "reserved_cents": 0}
