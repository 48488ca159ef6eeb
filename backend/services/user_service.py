"""
User profiles, KYC submissions, wallets and transaction history.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Client, Freelancer, KYCRecord, Order, Transaction, User, Wallet
from domain.enums import KYCStatus, UserStatus
from domain.errors import NotFoundError, ValidationError
from services import audit

logger = logging.getLogger(__name__)


async def get_user(db: AsyncSession, user_id: str) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


async def get_kyc_record(db: AsyncSession, user_id: str) -> Optional[KYCRecord]:
    result = await db.execute(select(KYCRecord).where(KYCRecord.user_id == user_id))
    return result.scalar_one_or_none()


async def submit_kyc(db: AsyncSession, user: User, docs: dict) -> tuple[KYCRecord, bool]:
    """
    Store KYC documents and put the account back into `pending_kyc`.

    Returns:
        (record, created) - created is False when an existing record was replaced.
    """
    record = await get_kyc_record(db, user.id)
    created = record is None

    if record is not None:
        if record.status == KYCStatus.VERIFIED.value:
            raise ValidationError("KYC already verified")
        record.docs = docs
        record.status = KYCStatus.PENDING.value
        record.updated_at = datetime.utcnow()
    else:
        record = KYCRecord(user_id=user.id, status=KYCStatus.PENDING.value, docs=docs)
        db.add(record)
        await db.flush()

    user.status = UserStatus.PENDING_KYC.value
    user.kyc_id = record.id
    await db.commit()

    logger.info(f"  🪪 KYC {'submitted' if created else 'resubmitted'}: user={user.id}")
    return record, created


async def update_freelancer_profile(
    db: AsyncSession,
    user_id: str,
    *,
    tagline: Optional[str] = None,
    skills: Optional[list[str]] = None,
    portfolio_public: Optional[dict] = None,
) -> Freelancer:
    result = await db.execute(select(Freelancer).where(Freelancer.user_id == user_id))
    profile = result.scalar_one_or_none()
    if not profile:
        raise NotFoundError("Freelancer profile not found")

    if tagline is not None:
        profile.tagline = tagline
    if skills is not None:
        profile.skills = skills
    if portfolio_public is not None:
        profile.portfolio_public = portfolio_public
    await db.commit()
    return profile


async def get_client_profile(db: AsyncSession, user_id: str) -> Client:
    result = await db.execute(select(Client).where(Client.user_id == user_id))
    profile = result.scalar_one_or_none()
    if not profile:
        raise NotFoundError("Client profile not found")
    return profile


async def get_wallet(db: AsyncSession, user_id: str) -> Wallet:
    wallet = await db.get(Wallet, user_id)
    if not wallet:
        raise NotFoundError("Wallet not found")
    return wallet


async def list_transactions(
    db: AsyncSession,
    user_id: str,
    *,
    limit: int,
    offset: int,
) -> tuple[list[Transaction], int]:
    """Transactions on every order the user is a party to, newest first."""
    client_ids = select(Client.id).where(Client.user_id == user_id)
    freelancer_ids = select(Freelancer.id).where(Freelancer.user_id == user_id)
    order_ids = select(Order.id).where(
        or_(Order.client_id.in_(client_ids), Order.freelancer_id.in_(freelancer_ids))
    )

    total = (
        await db.execute(
            select(func.count()).select_from(Transaction).where(Transaction.order_id.in_(order_ids))
        )
    ).scalar_one()

    result = await db.execute(
        select(Transaction)
        .where(Transaction.order_id.in_(order_ids))
        .order_by(Transaction.created_at.desc())
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def list_users(db: AsyncSession, *, limit: int = 200, status: Optional[str] = None) -> list[User]:
    stmt = select(User).order_by(User.created_at.desc()).limit(limit)
    if status:
        stmt = stmt.where(User.status == status)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def verify_user(db: AsyncSession, user_id: str, *, admin: User) -> User:
    """Admin: mark the account and its KYC record verified."""
    user = await get_user(db, user_id)
    user.status = UserStatus.VERIFIED.value

    record = await get_kyc_record(db, user_id)
    if record is not None:
        record.status = KYCStatus.VERIFIED.value
        record.verified_by_admin_id = admin.id
        record.verified_at = datetime.utcnow()

    await audit.record(
        db,
        actor_id=admin.id,
        action="user_verified",
        target_type="user",
        target_id=user_id,
    )
    await db.commit()
    logger.info(f"  ✅ User verified: {user_id} by {admin.id}")
    return user


async def list_kyc_records(db: AsyncSession, *, status: Optional[str] = None, limit: int = 200) -> list[KYCRecord]:
    stmt = select(KYCRecord).order_by(KYCRecord.updated_at.desc()).limit(limit)
    if status:
        stmt = stmt.where(KYCRecord.status == status)
    result = await db.execute(stmt)
    return list(result.scalars().all())
