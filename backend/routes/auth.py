"""
Authentication endpoints - thin relay over Supabase Auth plus the local
user profile.

Endpoints:
    POST /auth/signup            - register (rate limited)
    POST /auth/login             - password login (rate limited)
    GET  /auth/me                - current profile + role profile + wallet
    PUT  /auth/me                - update name / phone / metadata
    POST /auth/refresh           - exchange a refresh token
    POST /auth/logout            - revoke the current session
    POST /auth/forgot-password   - send the reset email (rate limited)
    POST /auth/reset-password    - set a new password (rate limited)
"""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from context import get_auth_client
from database import get_db
from db_models import User
from domain.responses import success_response
from middleware.auth import get_access_token, get_current_user
from middleware.rate_limit import rate_limit
from models import (
    ForgotPasswordRequest,
    LoginRequest,
    ProfileUpdateRequest,
    RefreshRequest,
    ResetPasswordRequest,
    SignupRequest,
    UserOut,
)
from services import auth_service
from services.supabase_auth import SupabaseAuthClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

_auth_limit = rate_limit(
    max_requests=settings.auth_rate_limit,
    window_seconds=settings.auth_rate_window_seconds,
)


# ── POST /auth/signup ──────────────────────────────────────────────

@router.post("/signup", status_code=status.HTTP_201_CREATED, dependencies=[Depends(_auth_limit)])
async def signup(
    body: SignupRequest,
    db: AsyncSession = Depends(get_db),
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
):
    """
    Register a user.

    1. Rejects an email that already has a profile (409)
    2. Creates the Supabase Auth user
    3. Creates users row (pending_kyc), role profile, wallet, KYC record
    """
    user = await auth_service.signup(
        db,
        auth_client,
        email=body.email,
        password=body.password,
        full_name=body.full_name,
        phone=body.phone,
        role=body.role,
    )
    return success_response(
        data={"user": auth_service.public_user(user)},
        message="User registered successfully",
    )


# ── POST /auth/login ───────────────────────────────────────────────

@router.post("/login", dependencies=[Depends(_auth_limit)])
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
):
    result = await auth_service.login(db, auth_client, email=body.email, password=body.password)
    return success_response(data=result, message="Login successful")


# ── /auth/me ───────────────────────────────────────────────────────

@router.get("/me")
async def get_me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return success_response(data=await auth_service.profile_bundle(db, user))


@router.put("/me")
async def update_me(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await auth_service.update_profile(
        db,
        user,
        full_name=body.full_name,
        phone=body.phone,
        metadata=body.metadata,
    )
    return success_response(
        data=UserOut.model_validate(user).model_dump(mode="json"),
        message="Profile updated successfully",
    )


# ── Session relay ──────────────────────────────────────────────────

@router.post("/refresh")
async def refresh_token(
    body: RefreshRequest,
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
):
    session = await auth_service.refresh(auth_client, body.refresh_token)
    return success_response(data={"session": session}, message="Token refreshed successfully")


@router.post("/logout")
async def logout(
    _user: User = Depends(get_current_user),
    token: str = Depends(get_access_token),
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
):
    await auth_service.logout(auth_client, token)
    return success_response(message="Logged out successfully")


@router.post("/forgot-password", dependencies=[Depends(_auth_limit)])
async def forgot_password(
    body: ForgotPasswordRequest,
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
):
    await auth_service.forgot_password(auth_client, body.email)
    return success_response(message="Password reset email sent successfully")


@router.post("/reset-password", dependencies=[Depends(_auth_limit)])
async def reset_password(
    body: ResetPasswordRequest,
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
):
    await auth_service.reset_password(auth_client, token=body.token, password=body.password)
    return success_response(message="Password reset successfully")
