"""
Payment service - initiation, manual verification and status lookup.

Initiation attaches a fresh reference to the order and hands the payer the
escrow account details; the money moves out of band and is confirmed by the
Paystack webhook (services/webhook_service.py) or by an operator through
manual verification.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Client, Freelancer, Order, User
from domain.enums import PAYABLE_ORDER_STATUSES, OrderStatus, UserRole
from domain.errors import ConflictError, NotFoundError, PermissionDeniedError
from services import audit
from services.paystack import escrow_account_details, generate_payment_reference

logger = logging.getLogger(__name__)


async def _get_order(db: AsyncSession, order_id: str) -> Order:
    result = await db.execute(select(Order).where(Order.id == order_id))
    order = result.scalar_one_or_none()
    if not order:
        raise NotFoundError("Order not found")
    return order


async def _is_order_client(db: AsyncSession, order: Order, user: User) -> bool:
    result = await db.execute(select(Client.user_id).where(Client.id == order.client_id))
    return result.scalar_one_or_none() == user.id


async def _is_order_freelancer(db: AsyncSession, order: Order, user: User) -> bool:
    result = await db.execute(select(Freelancer.user_id).where(Freelancer.id == order.freelancer_id))
    return result.scalar_one_or_none() == user.id


async def initiate_payment(db: AsyncSession, *, order_id: str, user: User) -> dict:
    """
    Attach a payment reference to an order and return the escrow account.

    Re-initiating while the order is still awaiting payment overwrites the
    previous reference.
    """
    order = await _get_order(db, order_id)

    if user.role != UserRole.ADMIN.value and not await _is_order_client(db, order, user):
        raise PermissionDeniedError("Only the order's client can initiate payment")

    if OrderStatus(order.status) not in PAYABLE_ORDER_STATUSES:
        raise ConflictError(
            f"Order is already {order.status}",
            details={"status": order.status},
        )

    reference = generate_payment_reference(order.id)
    order.payment_reference = reference
    order.status = OrderStatus.PAYMENT_PENDING_VERIFICATION.value
    await db.commit()

    logger.info(f"  💳 Payment initiated: order={order.id} ref={reference} amount={order.amount_cents}")

    return {
        "reference": reference,
        "account": escrow_account_details(),
    }


async def verify_payment_manually(db: AsyncSession, *, reference: str, operator: User) -> Order:
    """
    Operator override: move the order owning `reference` into escrow.

    No amount check and no wallet change; the action is audited.
    """
    result = await db.execute(select(Order).where(Order.payment_reference == reference))
    order = result.scalar_one_or_none()
    if not order:
        raise NotFoundError("Order not found for reference")

    previous = order.status
    order.status = OrderStatus.IN_ESCROW.value
    await audit.record(
        db,
        actor_id=operator.id,
        action="payment_manually_verified",
        target_type="order",
        target_id=order.id,
        details={"reference": reference, "previous_status": previous},
    )
    await db.commit()

    logger.info(f"  ✅ Payment manually verified: order={order.id} ref={reference} by {operator.id}")
    return order


async def get_payment_status(db: AsyncSession, *, order_id: str, user: User) -> dict:
    order = await _get_order(db, order_id)

    if user.role not in (UserRole.ADMIN.value, UserRole.MODERATOR.value):
        if not (await _is_order_client(db, order, user) or await _is_order_freelancer(db, order, user)):
            raise PermissionDeniedError("Access denied")

    return {"status": order.status, "payment_reference": order.payment_reference}
