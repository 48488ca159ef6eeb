"""
Gig listings - freelancer service offers.
"""
import logging
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Freelancer, Gig, User
from domain.enums import UserRole
from domain.errors import NotFoundError, PermissionDeniedError, ValidationError

logger = logging.getLogger(__name__)


async def _freelancer_id_for(db: AsyncSession, user: User) -> Optional[str]:
    result = await db.execute(select(Freelancer.id).where(Freelancer.user_id == user.id))
    return result.scalar_one_or_none()


async def search_gigs(
    db: AsyncSession,
    *,
    q: Optional[str] = None,
    category: Optional[str] = None,
    min_price: Optional[int] = None,
    max_price: Optional[int] = None,
    active_only: bool = True,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[Gig], int]:
    filters = []
    if active_only:
        filters.append(Gig.is_active.is_(True))
    if q:
        pattern = f"%{q.lower()}%"
        filters.append(or_(func.lower(Gig.title).like(pattern), func.lower(Gig.description).like(pattern)))
    if category:
        filters.append(Gig.category == category)
    if min_price is not None:
        filters.append(Gig.price_cents >= min_price)
    if max_price is not None:
        filters.append(Gig.price_cents <= max_price)

    total = (await db.execute(select(func.count()).select_from(Gig).where(*filters))).scalar_one()
    result = await db.execute(
        select(Gig).where(*filters).order_by(Gig.created_at.desc()).offset(offset).limit(limit)
    )
    return list(result.scalars().all()), total


async def get_gig(db: AsyncSession, gig_id: str) -> Gig:
    gig = await db.get(Gig, gig_id)
    if not gig:
        raise NotFoundError("Gig not found")
    return gig


async def create_gig(db: AsyncSession, user: User, **fields) -> Gig:
    freelancer_id = await _freelancer_id_for(db, user)
    if not freelancer_id:
        raise ValidationError("Freelancer profile not found")

    gig = Gig(freelancer_id=freelancer_id, **fields)
    gig.currency = gig.currency.upper()
    db.add(gig)
    await db.commit()
    logger.info(f"  🛠️  Gig created: {gig.id} by freelancer {freelancer_id}")
    return gig


async def _ensure_owner(db: AsyncSession, gig: Gig, user: User) -> None:
    if user.role == UserRole.ADMIN.value:
        return
    if gig.freelancer_id != await _freelancer_id_for(db, user):
        raise PermissionDeniedError("Access denied")


async def update_gig(db: AsyncSession, gig_id: str, user: User, changes: dict) -> Gig:
    gig = await get_gig(db, gig_id)
    await _ensure_owner(db, gig, user)
    for field, value in changes.items():
        if value is not None:
            setattr(gig, field, value)
    await db.commit()
    return gig


async def deactivate_gig(db: AsyncSession, gig_id: str, user: User) -> Gig:
    gig = await get_gig(db, gig_id)
    await _ensure_owner(db, gig, user)
    gig.is_active = False
    await db.commit()
    logger.info(f"  Gig deactivated: {gig.id}")
    return gig
