"""
Daily escrow reconciliation.

For each freelancer wallet the reserved balance should equal

    completed escrow_credit − completed admin_payout − completed refund

over that freelancer's orders. Any difference is reported, together with
orders stuck in `payment_pending_verification`. The report is written to the
audit trail (`reconciliation_report`); nothing is corrected automatically.
"""
import logging
from datetime import datetime, timedelta

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Freelancer, Order, Transaction, Wallet
from domain.constants import SYSTEM_ACTOR
from domain.enums import OrderStatus, TransactionStatus, TransactionType
from services import audit

logger = logging.getLogger(__name__)


async def expected_reserves(db: AsyncSession) -> dict[str, int]:
    """freelancer profile id → escrow credits minus payouts and refunds (completed only)."""
    signed_amount = case(
        (Transaction.type == TransactionType.ESCROW_CREDIT.value, Transaction.amount_cents),
        (Transaction.type == TransactionType.ADMIN_PAYOUT.value, -Transaction.amount_cents),
        (Transaction.type == TransactionType.REFUND.value, -Transaction.amount_cents),
        else_=0,
    )
    result = await db.execute(
        select(Order.freelancer_id, func.coalesce(func.sum(signed_amount), 0))
        .join(Transaction, Transaction.order_id == Order.id)
        .where(Transaction.status == TransactionStatus.COMPLETED.value)
        .group_by(Order.freelancer_id)
    )
    return {freelancer_id: int(total) for freelancer_id, total in result.all()}


async def stale_verifications(db: AsyncSession, *, older_than_hours: int) -> list[dict]:
    cutoff = datetime.utcnow() - timedelta(hours=older_than_hours)
    result = await db.execute(
        select(Order.id, Order.payment_reference, Order.updated_at)
        .where(
            Order.status == OrderStatus.PAYMENT_PENDING_VERIFICATION.value,
            Order.updated_at < cutoff,
        )
        .order_by(Order.updated_at)
    )
    return [
        {
            "order_id": order_id,
            "payment_reference": reference,
            "since": updated_at.isoformat() if updated_at else None,
        }
        for order_id, reference, updated_at in result.all()
    ]


async def run_reconciliation(db: AsyncSession, *, stale_verification_hours: int = 48) -> dict:
    logger.info("🧮 Reconciliation started")

    expected = await expected_reserves(db)
    wallets = await db.execute(
        select(Freelancer.id, Wallet.user_id, Wallet.reserved_cents)
        .join(Wallet, Wallet.user_id == Freelancer.user_id)
    )

    checked = 0
    discrepancies = []
    for freelancer_id, user_id, reserved in wallets.all():
        checked += 1
        want = expected.get(freelancer_id, 0)
        if reserved != want:
            discrepancies.append({
                "user_id": user_id,
                "freelancer_id": freelancer_id,
                "reserved_cents": reserved,
                "expected_cents": want,
                "difference_cents": reserved - want,
            })

    stale = await stale_verifications(db, older_than_hours=stale_verification_hours)

    report = {
        "generated_at": datetime.utcnow().isoformat(),
        "wallets_checked": checked,
        "discrepancies": discrepancies,
        "stale_verifications": stale,
    }
    await audit.record(
        db,
        actor_id=SYSTEM_ACTOR,
        action="reconciliation_report",
        target_type="system",
        details=report,
    )
    await db.commit()

    if discrepancies or stale:
        logger.warning(
            f"🧮 Reconciliation found {len(discrepancies)} wallet discrepancies "
            f"and {len(stale)} stale verifications"
        )
    else:
        logger.info(f"🧮 Reconciliation clean ({checked} wallets)")
    return report
