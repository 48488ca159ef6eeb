"""
Shared FastAPI dependencies.

Routers import from a single place: DB session, context accessors, the
current user, role guards and pagination.
"""

from __future__ import annotations

from typing import TypedDict

from fastapi import Depends, Query

from context import get_auth_client, get_context, get_mongo_db, get_queue  # noqa: F401
from database import get_db  # noqa: F401
from db_models import User
from domain.enums import UserRole
from domain.errors import PermissionDeniedError, UnauthorizedError
from middleware.auth import get_current_user


class Pagination(TypedDict):
    page: int
    limit: int
    offset: int


def pagination_params(
    page: int = Query(1, ge=1, le=10_000),
    limit: int = Query(20, ge=1, le=100),
) -> Pagination:
    return {"page": page, "limit": limit, "offset": (page - 1) * limit}


def require_role(*roles: UserRole):
    """
    Dependency factory: the current user must hold one of `roles`.

    Usage:
        @router.get("/users", dependencies=[Depends(require_role(UserRole.ADMIN))])
    """
    allowed = {r.value for r in roles}

    async def _require_role(user: User = Depends(get_current_user)) -> User:
        if user is None:
            raise UnauthorizedError("Authentication required")
        if user.role not in allowed:
            raise PermissionDeniedError("Insufficient permissions")
        return user

    return _require_role


require_admin = require_role(UserRole.ADMIN)
require_moderator = require_role(UserRole.ADMIN, UserRole.MODERATOR)
require_freelancer = require_role(UserRole.ADMIN, UserRole.FREELANCER)
require_client = require_role(UserRole.ADMIN, UserRole.CLIENT)


def is_admin(user: User) -> bool:
    return user.role == UserRole.ADMIN.value


def ensure_self_or_admin(user: User, target_user_id: str) -> None:
    if user.id != target_user_id and not is_admin(user):
        raise PermissionDeniedError("Access denied")


def ensure_self(user: User, target_user_id: str) -> None:
    if user.id != target_user_id:
        raise PermissionDeniedError("Access denied")
