"""
Weekly housekeeping: retention purges and abandoned orders.
"""
import logging
from datetime import datetime, timedelta

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import AuditLog, Order, WebhookEventRecord
from domain.enums import OrderStatus

logger = logging.getLogger(__name__)


async def run_cleanup(
    db: AsyncSession,
    *,
    webhook_event_retention_days: int = 90,
    audit_log_retention_days: int = 365,
    abandoned_order_days: int = 30,
) -> dict:
    """
    Returns:
        {"webhook_events_deleted", "audit_logs_deleted", "orders_cancelled"}
    """
    now = datetime.utcnow()
    logger.info("🧹 Cleanup started")

    webhook_result = await db.execute(
        delete(WebhookEventRecord).where(
            WebhookEventRecord.received_at < now - timedelta(days=webhook_event_retention_days)
        )
    )
    audit_result = await db.execute(
        delete(AuditLog).where(AuditLog.created_at < now - timedelta(days=audit_log_retention_days))
    )
    orders_result = await db.execute(
        update(Order)
        .where(
            Order.status == OrderStatus.PENDING_PAYMENT.value,
            Order.created_at < now - timedelta(days=abandoned_order_days),
        )
        .values(status=OrderStatus.CANCELLED.value, updated_at=now)
        .execution_options(synchronize_session="fetch")
    )
    await db.commit()

    summary = {
        "webhook_events_deleted": webhook_result.rowcount,
        "audit_logs_deleted": audit_result.rowcount,
        "orders_cancelled": orders_result.rowcount,
    }
    logger.info(f"🧹 Cleanup finished: {summary}")
    return summary
