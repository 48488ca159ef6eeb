"""
Escrow release - pays the freelancer for a finished order.

`process_payout` does every write in one transaction:
    admin_payout transaction (completed) → order completed → reserve -= amount

`run_payout` wraps it with the success/failure notification, which is how
both the arq payout worker and the inline (no-Redis) admin path call it.
"""
import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Order, Transaction
from domain.constants import NOTIFY_PAYOUT_FAILED, NOTIFY_PAYOUT_SUCCESS
from domain.enums import (
    RELEASABLE_ORDER_STATUSES,
    OrderStatus,
    TransactionStatus,
    TransactionType,
)
from domain.errors import ConflictError, NotFoundError
from services import wallet_service

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str, dict], Awaitable[object]]


class PayoutError(Exception):
    """Payout could not be applied; nothing was written."""


async def process_payout(
    db: AsyncSession,
    *,
    order_id: str,
    amount: int,
    freelancer_user_id: str,
    job_id: Optional[str] = None,
) -> Transaction:
    """
    Release `amount` of escrow for `order_id` to the freelancer.

    Raises:
        PayoutError: order missing, not releasable, or wallet missing
    """
    try:
        order = await db.get(Order, order_id)
        if not order:
            raise PayoutError(f"Order {order_id} not found")
        if OrderStatus(order.status) not in RELEASABLE_ORDER_STATUSES:
            raise PayoutError(f"Order {order_id} is {order.status}, not releasable")

        txn = Transaction(
            order_id=order.id,
            type=TransactionType.ADMIN_PAYOUT.value,
            amount_cents=amount,
            status=TransactionStatus.COMPLETED.value,
            meta={
                "processed_at": datetime.utcnow().isoformat(),
                "worker_job_id": job_id,
            },
        )
        db.add(txn)
        await db.flush()

        order.status = OrderStatus.COMPLETED.value
        order.completed_at = datetime.utcnow()
        order.escrow_release_tx_id = txn.id

        if not await wallet_service.adjust_reserved(db, freelancer_user_id, -amount):
            raise PayoutError(f"Wallet missing for freelancer user {freelancer_user_id}")

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"  💸 Payout completed: order={order_id} amount={amount} → {freelancer_user_id}")
    return txn


async def run_payout(
    db: AsyncSession,
    notify: Notifier,
    *,
    order_id: str,
    amount: int,
    freelancer_user_id: str,
    job_id: Optional[str] = None,
) -> dict:
    """Process a payout and notify the freelancer either way. Re-raises on failure."""
    try:
        txn = await process_payout(
            db,
            order_id=order_id,
            amount=amount,
            freelancer_user_id=freelancer_user_id,
            job_id=job_id,
        )
    except Exception as e:
        logger.error(f"Payout failed for order {order_id}: {e}")
        await notify(
            freelancer_user_id,
            NOTIFY_PAYOUT_FAILED,
            {"orderId": order_id, "amount": amount, "error": str(e)},
        )
        raise

    await notify(
        freelancer_user_id,
        NOTIFY_PAYOUT_SUCCESS,
        {"orderId": order_id, "amount": amount, "transactionId": txn.id},
    )
    return {"transaction_id": txn.id, "order_id": order_id, "amount": amount}


async def build_release(db: AsyncSession, order_id: str) -> dict:
    """
    Validate an order for escrow release and build the payout job payload.

    Returns:
        {"orderId", "amount", "freelancerId"} (freelancerId is the user id)
    """
    order = await db.get(Order, order_id)
    if not order:
        raise NotFoundError("Order not found")
    if OrderStatus(order.status) not in RELEASABLE_ORDER_STATUSES:
        raise ConflictError(
            f"Order is {order.status}; only in_escrow or delivered orders can be released",
            details={"status": order.status},
        )
    freelancer_user = await wallet_service.freelancer_user_id(db, order.freelancer_id)
    if not freelancer_user:
        raise NotFoundError("Freelancer profile not found")
    return {"orderId": order.id, "amount": order.amount_cents, "freelancerId": freelancer_user}
