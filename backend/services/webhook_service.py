"""
Paystack webhook processing.

Each delivery is handled in ONE database transaction: the order, the
transaction row, the wallet change and the `webhook_events` dedup row commit
together or not at all. A delivery whose event key was already recorded is
acknowledged as a duplicate without any write.

Handlers:
    charge.success   → escrow_credit (completed), order in_escrow, reserve += amount
    charge.failed    → escrow_credit (failed), order back to pending_payment
    transfer.success → transaction completed + transfer metadata
    transfer.failed  → transaction failed + failure metadata
"""
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Order, Transaction, WebhookEventRecord
from domain.enums import (
    PAYABLE_ORDER_STATUSES,
    OrderStatus,
    TransactionStatus,
    TransactionType,
    WebhookEvent,
)
from services import wallet_service
from services.paystack import validate_payment_amount, validate_payment_currency

logger = logging.getLogger(__name__)

SUPPORTED_EVENTS = frozenset(e.value for e in WebhookEvent)

OUTCOME_PROCESSED = "processed"
OUTCOME_DUPLICATE = "duplicate"
OUTCOME_ERROR = "error"


def event_key(event: str, data: dict) -> str:
    """
    Dedup key: gateway event id when present, else the reference.

    A reference-keyed `ignored:*` outcome is not recorded (see process_event),
    so a later valid delivery for the same reference without an id still runs.
    """
    identifier = data.get("id") or data.get("reference") or ""
    return f"{event}:{identifier}"


def _now_iso() -> str:
    return datetime.utcnow().isoformat()


def _customer_email(data: dict) -> Optional[str]:
    customer = data.get("customer") or {}
    return customer.get("email") if isinstance(customer, dict) else None


async def _order_by_reference(db: AsyncSession, reference: Optional[str]) -> Optional[Order]:
    if not reference:
        return None
    result = await db.execute(select(Order).where(Order.payment_reference == reference))
    return result.scalar_one_or_none()


async def _transaction_by_reference(db: AsyncSession, reference: Optional[str]) -> Optional[Transaction]:
    if not reference:
        return None
    result = await db.execute(
        select(Transaction)
        .where(Transaction.paystack_reference == reference)
        .order_by(Transaction.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


# ════════════════════════════════════════════════════════════════════
# Event handlers - return an outcome string, never commit
# ════════════════════════════════════════════════════════════════════


async def handle_charge_success(db: AsyncSession, data: dict) -> str:
    reference = data.get("reference")
    order = await _order_by_reference(db, reference)
    if not order:
        logger.warning(f"  charge.success for unknown reference: {reference}")
        return "ignored:unknown_order"

    if OrderStatus(order.status) not in PAYABLE_ORDER_STATUSES:
        logger.warning(f"  charge.success for order {order.id} already {order.status} - not credited again")
        return "ignored:already_settled"

    amount = data.get("amount")
    if not validate_payment_amount(order.amount_cents, amount):
        logger.warning(
            f"  Amount mismatch for order {order.id}: expected {order.amount_cents}, received {amount}"
        )
        return "ignored:amount_mismatch"

    if not validate_payment_currency(order.currency, data.get("currency")):
        logger.warning(
            f"  Currency mismatch for order {order.id}: expected {order.currency}, received {data.get('currency')}"
        )
        return "ignored:currency_mismatch"

    freelancer_user = await wallet_service.freelancer_user_id(db, order.freelancer_id)
    if not freelancer_user:
        raise LookupError(f"Freelancer profile {order.freelancer_id} has no user")

    db.add(Transaction(
        order_id=order.id,
        type=TransactionType.ESCROW_CREDIT.value,
        amount_cents=amount,
        status=TransactionStatus.COMPLETED.value,
        paystack_reference=reference,
        meta={
            "customer_email": _customer_email(data),
            "payment_channel": data.get("channel"),
            "paid_at": data.get("paid_at"),
        },
    ))
    order.status = OrderStatus.IN_ESCROW.value
    if not await wallet_service.adjust_reserved(db, freelancer_user, amount):
        raise LookupError(f"Wallet missing for freelancer user {freelancer_user}")

    logger.info(f"  💰 Escrow credited: order={order.id} amount={amount} freelancer={freelancer_user}")
    return OUTCOME_PROCESSED


async def handle_charge_failed(db: AsyncSession, data: dict) -> str:
    reference = data.get("reference")
    order = await _order_by_reference(db, reference)
    if not order:
        logger.warning(f"  charge.failed for unknown reference: {reference}")
        return "ignored:unknown_order"

    if OrderStatus(order.status) not in PAYABLE_ORDER_STATUSES:
        logger.warning(f"  charge.failed for order {order.id} already {order.status} - ignored")
        return "ignored:already_settled"

    amount = data.get("amount")
    db.add(Transaction(
        order_id=order.id,
        type=TransactionType.ESCROW_CREDIT.value,
        amount_cents=amount if isinstance(amount, int) else order.amount_cents,
        status=TransactionStatus.FAILED.value,
        paystack_reference=reference,
        meta={
            "customer_email": _customer_email(data),
            "failure_reason": data.get("gateway_response"),
            "failed_at": _now_iso(),
        },
    ))
    order.status = OrderStatus.PENDING_PAYMENT.value

    logger.info(f"  ❌ Payment failed: order={order.id} reason={data.get('gateway_response')}")
    return OUTCOME_PROCESSED


async def _patch_transfer(db: AsyncSession, data: dict, *, status: TransactionStatus, extra: dict) -> str:
    reference = data.get("reference")
    txn = await _transaction_by_reference(db, reference)
    if not txn:
        logger.warning(f"  Transfer event for unknown transaction reference: {reference}")
        return "ignored:unknown_transaction"

    txn.status = status.value
    txn.meta = {**(txn.meta or {}), **extra}
    logger.info(f"  🏦 Transfer {status.value}: txn={txn.id} ref={reference}")
    return OUTCOME_PROCESSED


async def handle_transfer_success(db: AsyncSession, data: dict) -> str:
    return await _patch_transfer(
        db,
        data,
        status=TransactionStatus.COMPLETED,
        extra={"transfer_completed_at": _now_iso(), "transfer_reference": data.get("transfer_code") or data.get("reference")},
    )


async def handle_transfer_failed(db: AsyncSession, data: dict) -> str:
    return await _patch_transfer(
        db,
        data,
        status=TransactionStatus.FAILED,
        extra={"transfer_failed_at": _now_iso(), "failure_reason": data.get("reason") or data.get("gateway_response")},
    )


HANDLERS: dict[str, Callable[[AsyncSession, dict], Awaitable[str]]] = {
    WebhookEvent.CHARGE_SUCCESS.value: handle_charge_success,
    WebhookEvent.CHARGE_FAILED.value: handle_charge_failed,
    WebhookEvent.TRANSFER_SUCCESS.value: handle_transfer_success,
    WebhookEvent.TRANSFER_FAILED.value: handle_transfer_failed,
}


# ════════════════════════════════════════════════════════════════════
# Entry point
# ════════════════════════════════════════════════════════════════════


async def process_event(db: AsyncSession, payload: dict[str, Any]) -> dict:
    """
    Dedupe, dispatch and commit one verified webhook delivery.

    Never raises: handler failures are rolled back and logged so the
    gateway still gets a 200.

    Returns:
        {"event", "event_key", "outcome", "duplicate"}
    """
    event = payload["event"]
    data = payload.get("data") or {}
    key = event_key(event, data)
    result = {"event": event, "event_key": key, "duplicate": False}

    existing = await db.execute(select(WebhookEventRecord.id).where(WebhookEventRecord.event_key == key))
    if existing.scalar_one_or_none() is not None:
        logger.info(f"  🔁 Duplicate webhook ignored: {key}")
        return {**result, "outcome": OUTCOME_DUPLICATE, "duplicate": True}

    try:
        outcome = await HANDLERS[event](db, data)
        if data.get("id") or not outcome.startswith("ignored:"):
            db.add(WebhookEventRecord(
                event_key=key,
                event=event,
                reference=data.get("reference"),
                outcome=outcome,
                payload=payload,
            ))
        await db.commit()
    except IntegrityError:
        # Concurrent delivery of the same event committed first
        await db.rollback()
        logger.info(f"  🔁 Duplicate webhook (concurrent): {key}")
        return {**result, "outcome": OUTCOME_DUPLICATE, "duplicate": True}
    except Exception:
        await db.rollback()
        logger.exception(f"Webhook processing failed for {key}")
        return {**result, "outcome": OUTCOME_ERROR}

    return {**result, "outcome": outcome}
