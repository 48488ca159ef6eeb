"""
Admin / moderation endpoints.

    GET  /admin/users                   - admin (optional ?status=)
    POST /admin/users/{id}/verify       - admin; activates user + KYC
    GET  /admin/kyc                     - admin or moderator (optional ?status=)
    POST /admin/orders/{id}/release     - admin; escrow release → payout job
    GET  /admin/queues                  - admin or moderator
    POST /admin/reconciliation          - admin; trigger a reconciliation run

Without Redis the release and reconciliation run inline in the request.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from context import get_queue
from database import get_db
from db_models import User
from deps import require_admin, require_moderator
from domain.responses import success_response
from jobs.queue import JobQueue
from models import KYCRecordOut, UserOut
from services import notification_service, payout_service, reconciliation_service, user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


# ── Users & KYC ─────────────────────────────────────────────────────

@router.get("/users")
async def list_users(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    users = await user_service.list_users(db, status=status_filter)
    return success_response(data=[UserOut.model_validate(u).model_dump(mode="json") for u in users])


@router.post("/users/{user_id}/verify")
async def verify_user(
    user_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.verify_user(db, user_id, admin=admin)
    return success_response(
        data=UserOut.model_validate(user).model_dump(mode="json"),
        message="User verified successfully",
    )


@router.get("/kyc")
async def list_kyc(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    _operator: User = Depends(require_moderator),
    db: AsyncSession = Depends(get_db),
):
    records = await user_service.list_kyc_records(db, status=status_filter)
    return success_response(data=[KYCRecordOut.model_validate(r).model_dump(mode="json") for r in records])


# ── Escrow release ──────────────────────────────────────────────────

@router.post("/orders/{order_id}/release", status_code=status.HTTP_202_ACCEPTED)
async def release_escrow(
    order_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    queue: JobQueue = Depends(get_queue),
):
    """
    Release an in_escrow/delivered order to the freelancer.

    With Redis the payout is queued (202 + jobId); without it the payout
    runs inline and the transaction id is returned.
    """
    release = await payout_service.build_release(db, order_id)
    logger.info(f"🔓 Escrow release requested for order {order_id} by admin {admin.id}")

    if queue.enabled:
        job_id = await queue.enqueue_payout(
            order_id=release["orderId"],
            amount=release["amount"],
            freelancer_id=release["freelancerId"],
        )
        return success_response(
            data={**release, "jobId": job_id, "queued": True},
            message="Payout queued",
        )

    async def notify(user_id: str, type: str, data: dict) -> None:
        await notification_service.send_notification(db, user_id=user_id, type=type, data=data)

    result = await payout_service.run_payout(
        db,
        notify,
        order_id=release["orderId"],
        amount=release["amount"],
        freelancer_user_id=release["freelancerId"],
    )
    return success_response(
        data={**release, "transactionId": result["transaction_id"], "queued": False},
        message="Payout completed",
    )


# ── Background jobs ─────────────────────────────────────────────────

@router.get("/queues")
async def queue_stats(
    _operator: User = Depends(require_moderator),
    queue: JobQueue = Depends(get_queue),
):
    return success_response(data=await queue.stats())


@router.post("/reconciliation", status_code=status.HTTP_202_ACCEPTED)
async def trigger_reconciliation(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    queue: JobQueue = Depends(get_queue),
):
    if queue.enabled:
        job_id = await queue.enqueue_reconciliation()
        return success_response(data={"jobId": job_id, "queued": True}, message="Reconciliation queued")

    report = await reconciliation_service.run_reconciliation(
        db, stale_verification_hours=settings.stale_verification_hours
    )
    return success_response(data={"report": report, "queued": False}, message="Reconciliation completed")
