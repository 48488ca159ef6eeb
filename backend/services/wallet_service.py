"""
Wallet store helpers.

Wallets are keyed by user id while orders carry freelancer/client profile
ids, so every escrow write resolves the freelancer's user id first.
Reserved-balance changes are single UPDATE statements.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Freelancer, Wallet

logger = logging.getLogger(__name__)


async def freelancer_user_id(db: AsyncSession, freelancer_id: str) -> Optional[str]:
    """Map a freelancer profile id to the owning user id."""
    result = await db.execute(select(Freelancer.user_id).where(Freelancer.id == freelancer_id))
    return result.scalar_one_or_none()


async def get_wallet(db: AsyncSession, user_id: str) -> Optional[Wallet]:
    result = await db.execute(select(Wallet).where(Wallet.user_id == user_id))
    return result.scalar_one_or_none()


async def adjust_reserved(db: AsyncSession, user_id: str, delta_cents: int) -> bool:
    """
    Atomically add `delta_cents` (may be negative) to the wallet's reserved
    balance. Returns False when the user has no wallet.
    """
    result = await db.execute(
        update(Wallet)
        .where(Wallet.user_id == user_id)
        .values(
            reserved_cents=Wallet.reserved_cents + delta_cents,
            updated_at=datetime.utcnow(),
        )
    )
    if result.rowcount == 0:
        logger.warning(f"No wallet for user {user_id} - reserved change of {delta_cents} skipped")
        return False
    return True
