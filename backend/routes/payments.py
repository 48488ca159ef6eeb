"""
Payment endpoints - bank-transfer escrow flow.

    POST /payments/initiate          - client gets a reference + escrow account
    POST /payments/verify            - operator override (admin/moderator)
    GET  /payments/status/{orderId}  - order parties or operators

Escrow credit itself happens in the Paystack webhook (routes/webhooks.py).
"""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import require_moderator
from domain.responses import success_response
from middleware.auth import get_current_user
from models import (
    OrderOut,
    PaymentInitiateRequest,
    PaymentInitiateResponse,
    PaymentStatusResponse,
    PaymentVerifyRequest,
)
from services import payment_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/initiate", status_code=status.HTTP_201_CREATED)
async def initiate_payment(
    body: PaymentInitiateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await payment_service.initiate_payment(db, order_id=body.order_id, user=user)
    return success_response(
        data=PaymentInitiateResponse.model_validate(result).model_dump(),
        message="Payment initiated. Transfer the exact amount using the reference.",
    )


@router.post("/verify")
async def verify_payment(
    body: PaymentVerifyRequest,
    operator: User = Depends(require_moderator),
    db: AsyncSession = Depends(get_db),
):
    order = await payment_service.verify_payment_manually(db, reference=body.reference, operator=operator)
    return success_response(
        data=OrderOut.model_validate(order).model_dump(mode="json"),
        message="Payment verified",
    )


@router.get("/status/{order_id}")
async def payment_status(
    order_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await payment_service.get_payment_status(db, order_id=order_id, user=user)
    return success_response(data=PaymentStatusResponse.model_validate(result).model_dump())
