"""
Authentication flows - signup, login, profile, session relay.

Supabase Auth owns credentials and tokens. This service keeps the local
`users` row and its satellites (role profile, wallet, KYC record) in step:

    signup: auth user → users row → freelancer|client profile → wallet → kyc_record
            (if the local writes fail the auth user is deleted again)
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db_models import Client, Freelancer, KYCRecord, User, Wallet
from domain.enums import LOGIN_STATUSES, KYCStatus, UserRole, UserStatus
from domain.errors import (
    ConflictError,
    DomainError,
    NotFoundError,
    PermissionDeniedError,
    UnauthorizedError,
    ValidationError,
)
from services.supabase_auth import SupabaseAuthClient, SupabaseAuthError

logger = logging.getLogger(__name__)


def public_user(user: User) -> dict:
    """The user summary returned by signup/login."""
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "role": user.role,
        "status": user.status,
    }


def session_payload(session: dict) -> dict:
    return {
        "access_token": session.get("access_token"),
        "refresh_token": session.get("refresh_token"),
        "expires_at": session.get("expires_at"),
    }


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def signup(
    db: AsyncSession,
    auth_client: SupabaseAuthClient,
    *,
    email: str,
    password: str,
    full_name: str,
    phone: str,
    role: UserRole,
) -> User:
    """
    Register a user with Supabase Auth and create the local rows.

    Raises:
        ConflictError: email already registered locally (409)
        ValidationError: Supabase rejected the signup (400)
    """
    if await get_user_by_email(db, email):
        raise ConflictError("User with this email already exists")

    try:
        auth_user = await auth_client.sign_up(
            email,
            password,
            data={"full_name": full_name, "phone": phone, "role": role.value},
        )
    except SupabaseAuthError as e:
        if e.status_code >= 500:
            raise DomainError(e.message, status_code=e.status_code)
        raise ValidationError(e.message)

    auth_user_id = auth_user.get("id")
    if not auth_user_id:
        raise ValidationError("Failed to create user account")

    try:
        user = User(
            id=auth_user_id,
            email=email,
            full_name=full_name,
            phone=phone,
            role=role.value,
            status=UserStatus.PENDING_KYC.value,
        )
        db.add(user)
        if role == UserRole.FREELANCER:
            db.add(Freelancer(user_id=auth_user_id, skills=[], portfolio_public={}, bank_details={}))
        elif role == UserRole.CLIENT:
            db.add(Client(user_id=auth_user_id))
        db.add(Wallet(user_id=auth_user_id, balance_cents=0, reserved_cents=0))
        db.add(KYCRecord(user_id=auth_user_id, status=KYCStatus.PENDING.value, docs={}))
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception(f"Profile creation failed for {email} - removing auth user {auth_user_id}")
        try:
            await auth_client.admin_delete_user(auth_user_id)
        except SupabaseAuthError as e:
            logger.error(f"Auth user rollback failed for {auth_user_id}: {e.message}")
        raise

    logger.info(f"  👤 User registered: {user.id} ({role.value})")
    return user


async def login(
    db: AsyncSession,
    auth_client: SupabaseAuthClient,
    *,
    email: str,
    password: str,
) -> dict:
    """
    Password login. Only active/verified accounts may log in.

    Returns:
        {"user": {...}, "session": {access_token, refresh_token, expires_at}}
    """
    try:
        session = await auth_client.sign_in_with_password(email, password)
    except SupabaseAuthError as e:
        if e.status_code >= 500:
            raise DomainError(e.message, status_code=e.status_code)
        raise UnauthorizedError("Invalid credentials")

    auth_user_id = (session.get("user") or {}).get("id")
    if not auth_user_id:
        raise UnauthorizedError("Invalid credentials")

    user = await db.get(User, auth_user_id)
    if not user:
        raise NotFoundError("User profile not found")

    if UserStatus(user.status) not in LOGIN_STATUSES:
        raise PermissionDeniedError("Account is not active. Please complete KYC verification.")

    return {"user": public_user(user), "session": session_payload(session)}


async def profile_bundle(db: AsyncSession, user: User, *, include_wallet: bool = True) -> dict:
    """User row plus role profile (and wallet) as one JSON-ready dict."""
    from models import ClientOut, FreelancerOut, UserOut

    data = UserOut.model_validate(user).model_dump(mode="json")

    if user.role == UserRole.FREELANCER.value:
        result = await db.execute(select(Freelancer).where(Freelancer.user_id == user.id))
        profile = result.scalar_one_or_none()
        if profile:
            data["freelancer"] = FreelancerOut.model_validate(profile).model_dump(mode="json")
    elif user.role == UserRole.CLIENT.value:
        result = await db.execute(select(Client).where(Client.user_id == user.id))
        profile = result.scalar_one_or_none()
        if profile:
            data["client"] = ClientOut.model_validate(profile).model_dump(mode="json")

    if include_wallet:
        result = await db.execute(select(Wallet).where(Wallet.user_id == user.id))
        wallet = result.scalar_one_or_none()
        if wallet:
            data["wallet"] = {
                "balance_cents": wallet.balance_cents,
                "reserved_cents": wallet.reserved_cents,
            }

    return data


async def update_profile(
    db: AsyncSession,
    user: User,
    *,
    full_name: Optional[str] = None,
    phone: Optional[str] = None,
    metadata: Optional[dict] = None,
) -> User:
    if full_name:
        user.full_name = full_name
    if phone:
        user.phone = phone
    if metadata:
        user.meta = metadata
    await db.commit()
    logger.info(f"  ✏️  Profile updated: {user.id}")
    return user


async def refresh(auth_client: SupabaseAuthClient, refresh_token: str) -> dict:
    try:
        session = await auth_client.refresh_session(refresh_token)
    except SupabaseAuthError as e:
        if e.status_code >= 500:
            raise DomainError(e.message, status_code=e.status_code)
        raise UnauthorizedError("Invalid refresh token")
    if not session.get("access_token"):
        raise UnauthorizedError("Invalid refresh token")
    return session_payload(session)


async def logout(auth_client: SupabaseAuthClient, access_token: str) -> None:
    try:
        await auth_client.sign_out(access_token)
    except SupabaseAuthError as e:
        # The local session ends either way
        logger.warning(f"Supabase sign-out failed: {e.message}")


async def forgot_password(auth_client: SupabaseAuthClient, email: str) -> None:
    try:
        await auth_client.reset_password_for_email(
            email,
            redirect_to=f"{settings.frontend_url.rstrip('/')}/reset-password",
        )
    except SupabaseAuthError as e:
        raise DomainError(e.message, status_code=502 if e.status_code >= 500 else 400)


async def reset_password(auth_client: SupabaseAuthClient, *, token: str, password: str) -> None:
    try:
        await auth_client.update_password(token, password)
    except SupabaseAuthError as e:
        if e.status_code in (401, 403):
            raise UnauthorizedError("Invalid or expired reset token")
        raise DomainError(e.message, status_code=502 if e.status_code >= 500 else 400)
