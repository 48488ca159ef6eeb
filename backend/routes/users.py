"""
User profile, KYC, wallet and transaction endpoints.

Access rules:
    GET  /users/{id}               - self or admin
    PUT  /users/{id}               - self
    POST /users/{id}/kyc           - self
    GET  /users/{id}/kyc           - self or admin
    PUT  /users/{id}/freelancer    - freelancer self or admin
    PUT  /users/{id}/client        - client self or admin
    GET  /users/{id}/wallet        - self
    GET  /users/{id}/transactions  - self
"""
import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import (
    Pagination,
    ensure_self,
    ensure_self_or_admin,
    pagination_params,
    require_client,
    require_freelancer,
)
from domain.errors import NotFoundError
from domain.responses import paginated_response, success_response
from middleware.auth import get_current_user
from models import (
    ClientOut,
    FreelancerOut,
    FreelancerProfileUpdateRequest,
    KYCRecordOut,
    KYCSubmitRequest,
    ProfileUpdateRequest,
    TransactionOut,
    UserOut,
    WalletOut,
)
from services import auth_service, user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    ensure_self_or_admin(current, user_id)
    user = await user_service.get_user(db, user_id)
    return success_response(data=await auth_service.profile_bundle(db, user, include_wallet=False))


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    body: ProfileUpdateRequest,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    ensure_self(current, user_id)
    user = await auth_service.update_profile(
        db,
        current,
        full_name=body.full_name,
        phone=body.phone,
        metadata=body.metadata,
    )
    return success_response(
        data=UserOut.model_validate(user).model_dump(mode="json"),
        message="Profile updated successfully",
    )


# ── KYC ────────────────────────────────────────────────────────────

@router.post("/{user_id}/kyc")
async def submit_kyc(
    user_id: str,
    body: KYCSubmitRequest,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """201 on first submission, 200 when replacing pending/rejected docs."""
    ensure_self(current, user_id)
    record, created = await user_service.submit_kyc(db, current, body.docs)
    payload = success_response(
        data=KYCRecordOut.model_validate(record).model_dump(mode="json"),
        message="KYC documents submitted successfully" if created else "KYC documents updated successfully",
    )
    return JSONResponse(
        status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        content=payload,
    )


@router.get("/{user_id}/kyc")
async def get_kyc(
    user_id: str,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    ensure_self_or_admin(current, user_id)
    record = await user_service.get_kyc_record(db, user_id)
    if not record:
        raise NotFoundError("KYC record not found")
    return success_response(data=KYCRecordOut.model_validate(record).model_dump(mode="json"))


# ── Role profiles ──────────────────────────────────────────────────

@router.put("/{user_id}/freelancer")
async def update_freelancer_profile(
    user_id: str,
    body: FreelancerProfileUpdateRequest,
    current: User = Depends(require_freelancer),
    db: AsyncSession = Depends(get_db),
):
    ensure_self_or_admin(current, user_id)
    profile = await user_service.update_freelancer_profile(
        db,
        user_id,
        tagline=body.tagline,
        skills=body.skills,
        portfolio_public=body.portfolio_public,
    )
    return success_response(
        data=FreelancerOut.model_validate(profile).model_dump(mode="json"),
        message="Freelancer profile updated successfully",
    )


@router.put("/{user_id}/client")
async def update_client_profile(
    user_id: str,
    current: User = Depends(require_client),
    db: AsyncSession = Depends(get_db),
):
    """Client totals are maintained by the platform; this returns the profile."""
    ensure_self_or_admin(current, user_id)
    profile = await user_service.get_client_profile(db, user_id)
    return success_response(
        data=ClientOut.model_validate(profile).model_dump(mode="json"),
        message="Client profile updated successfully",
    )


# ── Money ──────────────────────────────────────────────────────────

@router.get("/{user_id}/wallet")
async def get_wallet(
    user_id: str,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    ensure_self(current, user_id)
    wallet = await user_service.get_wallet(db, user_id)
    return success_response(data=WalletOut.model_validate(wallet).model_dump(mode="json"))


@router.get("/{user_id}/transactions")
async def list_transactions(
    user_id: str,
    page: Pagination = Depends(pagination_params),
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    ensure_self(current, user_id)
    items, total = await user_service.list_transactions(
        db, user_id, limit=page["limit"], offset=page["offset"]
    )
    return paginated_response(
        [TransactionOut.model_validate(t).model_dump(mode="json") for t in items],
        page=page["page"],
        limit=page["limit"],
        total=total,
    )
