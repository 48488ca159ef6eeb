"""
Order service - creation, listing and user-driven status changes.

User-facing status moves follow ORDER_TRANSITIONS (domain/enums.py).
Escrow entry and payout completion are driven by the webhook, manual
verification and payout paths, which set statuses directly. Each party may
only make its own moves (see CLIENT_TARGETS / FREELANCER_TARGETS).
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Client, Freelancer, Gig, Order, Transaction, User
from domain.enums import (
    CLIENT_TARGETS,
    FREELANCER_TARGETS,
    FUNDED_ORDER_STATUSES,
    OrderStatus,
    TransactionStatus,
    TransactionType,
    UserRole,
    can_transition,
)
from domain.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from services import audit, wallet_service

logger = logging.getLogger(__name__)

# Only operators may push an order into escrow by hand
OPERATOR_ONLY_TARGETS = frozenset({OrderStatus.IN_ESCROW})

OPERATOR_ROLES = (UserRole.ADMIN.value, UserRole.MODERATOR.value)


async def _profile_id(db: AsyncSession, model, user_id: str) -> Optional[str]:
    result = await db.execute(select(model.id).where(model.user_id == user_id))
    return result.scalar_one_or_none()


async def create_order(
    db: AsyncSession,
    *,
    client_user: User,
    freelancer_user_id: str,
    amount_cents: int,
    currency: str,
    project_id: Optional[str] = None,
    gig_id: Optional[str] = None,
) -> Order:
    """Create a `pending_payment` order between the caller and a freelancer."""
    client_id = await _profile_id(db, Client, client_user.id)
    if not client_id:
        raise ValidationError("Client profile not found")

    freelancer_id = await _profile_id(db, Freelancer, freelancer_user_id)
    if not freelancer_id:
        raise ValidationError("Freelancer profile not found")

    if gig_id:
        gig = await db.get(Gig, gig_id)
        if not gig or gig.freelancer_id != freelancer_id:
            raise ValidationError("Gig not found for this freelancer")

    order = Order(
        client_id=client_id,
        freelancer_id=freelancer_id,
        gig_id=gig_id,
        amount_cents=amount_cents,
        currency=currency.upper(),
        status=OrderStatus.PENDING_PAYMENT.value,
        custom_instructions=project_id,
    )
    db.add(order)
    await db.commit()

    logger.info(f"  🧾 Order created: {order.id} ({amount_cents} {order.currency}) client={client_id}")
    return order


async def list_orders_for_user(db: AsyncSession, user: User) -> list[Order]:
    """Orders where the user is the client or the freelancer, newest first."""
    client_id = await _profile_id(db, Client, user.id)
    freelancer_id = await _profile_id(db, Freelancer, user.id)

    filters = []
    if client_id:
        filters.append(Order.client_id == client_id)
    if freelancer_id:
        filters.append(Order.freelancer_id == freelancer_id)
    if not filters:
        return []

    result = await db.execute(
        select(Order).where(or_(*filters)).order_by(Order.created_at.desc())
    )
    return list(result.scalars().all())


async def get_order(db: AsyncSession, order_id: str) -> Order:
    order = await db.get(Order, order_id)
    if not order:
        raise NotFoundError("Order not found")
    return order


async def is_party(db: AsyncSession, order: Order, user: User) -> bool:
    client_id = await _profile_id(db, Client, user.id)
    freelancer_id = await _profile_id(db, Freelancer, user.id)
    return order.client_id == client_id or order.freelancer_id == freelancer_id


async def get_order_for_user(db: AsyncSession, order_id: str, user: User) -> Order:
    order = await get_order(db, order_id)
    if user.role not in OPERATOR_ROLES and not await is_party(db, order, user):
        raise PermissionDeniedError("Access denied")
    return order


async def _party_side(db: AsyncSession, order: Order, user: User) -> Optional[str]:
    """Which side of the order the user is on, or None for outsiders."""
    if order.client_id == await _profile_id(db, Client, user.id):
        return "client"
    if order.freelancer_id == await _profile_id(db, Freelancer, user.id):
        return "freelancer"
    return None


async def _refund_escrow(db: AsyncSession, order: Order, user: User) -> None:
    """Take a cancelled order's escrow off the freelancer's reserved balance."""
    freelancer_user = await wallet_service.freelancer_user_id(db, order.freelancer_id)
    if not freelancer_user or not await wallet_service.adjust_reserved(db, freelancer_user, -order.amount_cents):
        raise ConflictError("Freelancer wallet not found; escrow cannot be refunded")
    db.add(Transaction(
        order_id=order.id,
        type=TransactionType.REFUND.value,
        amount_cents=order.amount_cents,
        status=TransactionStatus.COMPLETED.value,
        meta={"cancelled_by": user.id, "refunded_at": datetime.utcnow().isoformat()},
    ))


async def update_status(db: AsyncSession, *, order_id: str, target: OrderStatus, user: User) -> Order:
    """
    Move an order along the transition table.

    409 on a move the table does not allow (including any move to
    `completed`, which only escrow release makes). 403 when the caller is
    not a party, asks for the other party's move, or cancels a funded order
    without being an operator. Operators may act on any order; cancelling a
    funded order refunds its escrow.
    """
    order = await get_order(db, order_id)
    is_operator = user.role in OPERATOR_ROLES
    side = None if is_operator else await _party_side(db, order, user)

    if not is_operator and side is None:
        raise PermissionDeniedError("Access denied")
    if target in OPERATOR_ONLY_TARGETS and not is_operator:
        raise PermissionDeniedError("Insufficient permissions")

    current = OrderStatus(order.status)
    if not can_transition(current, target):
        raise ConflictError(
            f"Cannot move order from {current.value} to {target.value}",
            details={"from": current.value, "to": target.value},
        )

    funded = current in FUNDED_ORDER_STATUSES
    if not is_operator:
        allowed = CLIENT_TARGETS if side == "client" else FREELANCER_TARGETS
        if target not in allowed:
            raise PermissionDeniedError(f"The {side} cannot move an order to {target.value}")
        if target == OrderStatus.CANCELLED and funded:
            raise PermissionDeniedError("Funded orders can only be cancelled by an operator")

    if target == OrderStatus.CANCELLED and funded:
        await _refund_escrow(db, order, user)

    order.status = target.value
    if target == OrderStatus.DELIVERED:
        order.delivery_date = datetime.utcnow()

    await audit.record(
        db,
        actor_id=user.id,
        action="order_status_changed",
        target_type="order",
        target_id=order.id,
        details={"from": current.value, "to": target.value},
    )
    await db.commit()

    logger.info(f"  🔄 Order {order.id}: {current.value} → {target.value} by {user.id}")
    return order
