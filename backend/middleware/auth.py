"""
Bearer-token authentication against Supabase Auth.

Access tokens are issued by Supabase. When SUPABASE_JWT_SECRET is set they
are verified locally (HS256, audience "authenticated"); otherwise the token
is checked remotely with GET /auth/v1/user. Either way the matching `users`
row is then loaded and its status checked.
"""
import logging
from typing import Optional

import jwt
from fastapi import Depends, Header
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from context import get_auth_client
from database import get_db
from db_models import User
from domain.enums import AUTHENTICATED_STATUSES, UserStatus
from domain.errors import PermissionDeniedError, UnauthorizedError
from services.supabase_auth import SupabaseAuthClient, SupabaseAuthError

logger = logging.getLogger(__name__)


def _parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    token = parts[1].strip()
    return token or None


def decode_access_token(token: str) -> dict:
    """Verify a Supabase access token locally and return its claims."""
    try:
        return jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=["HS256"],
            audience=settings.supabase_jwt_audience,
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Invalid or expired token")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid or expired token")


async def resolve_token_subject(token: str, auth_client: SupabaseAuthClient) -> str:
    """Return the Supabase user id the token belongs to."""
    if settings.supabase_jwt_secret:
        subject = decode_access_token(token).get("sub")
    else:
        try:
            subject = (await auth_client.get_user(token)).get("id")
        except SupabaseAuthError:
            raise UnauthorizedError("Invalid or expired token")
    if not subject:
        raise UnauthorizedError("Invalid or expired token")
    return subject


async def get_access_token(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> str:
    token = _parse_bearer_token(authorization)
    if not token:
        raise UnauthorizedError("Access token required")
    return token


async def get_current_user(
    token: str = Depends(get_access_token),
    db: AsyncSession = Depends(get_db),
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
) -> User:
    """
    Dependency - the authenticated `users` row.

    401 when the token is missing/invalid or no profile row exists,
    403 when the account is suspended.
    """
    user_id = await resolve_token_subject(token, auth_client)

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise UnauthorizedError("User not found")

    if UserStatus(user.status) not in AUTHENTICATED_STATUSES:
        logger.warning(f"Blocked request from inactive account {user.id} ({user.status})")
        raise PermissionDeniedError("Account is not active")

    return user
