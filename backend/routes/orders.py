"""
Order endpoints.

    POST /orders               - client creates an order (pending_payment)
    GET  /orders               - orders where the caller is a party
    GET  /orders/{id}          - party or operator
    PUT  /orders/{id}/status   - move along the transition table (409 if illegal)
"""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import require_client
from domain.responses import success_response
from middleware.auth import get_current_user
from models import OrderCreateRequest, OrderOut, OrderStatusUpdateRequest
from services import order_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


def _out(order) -> dict:
    return OrderOut.model_validate(order).model_dump(mode="json")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(
    body: OrderCreateRequest,
    user: User = Depends(require_client),
    db: AsyncSession = Depends(get_db),
):
    order = await order_service.create_order(
        db,
        client_user=user,
        freelancer_user_id=body.freelancer_user_id,
        amount_cents=body.amount_cents,
        currency=body.currency,
        project_id=body.project_id,
        gig_id=body.gig_id,
    )
    return success_response(data=_out(order), message="Order created successfully")


@router.get("")
async def list_orders(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    orders = await order_service.list_orders_for_user(db, user)
    return success_response(data=[_out(o) for o in orders])


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return success_response(data=_out(await order_service.get_order_for_user(db, order_id, user)))


@router.put("/{order_id}/status")
async def update_order_status(
    order_id: str,
    body: OrderStatusUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await order_service.update_status(db, order_id=order_id, target=body.status, user=user)
    return success_response(data=_out(order), message="Order status updated")
