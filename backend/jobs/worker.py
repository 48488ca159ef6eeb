"""
arq worker settings - one worker process per queue.

Run from backend/:
    arq jobs.worker.PayoutWorkerSettings
    arq jobs.worker.NotificationWorkerSettings
    arq jobs.worker.ReconciliationWorkerSettings    (cron: daily 02:00)
    arq jobs.worker.CleanupWorkerSettings           (cron: Sundays 03:00)

Every worker builds its own AppContext on startup and closes it on shutdown.
Job functions receive the arq ctx dict; the AppContext sits at ctx["app"].
"""
import logging

from arq import cron
from arq.connections import RedisSettings

from config import settings
from context import AppContext
from domain.constants import QUEUE_CLEANUP, QUEUE_NOTIFICATIONS, QUEUE_PAYOUTS, QUEUE_RECONCILIATION
from services import cleanup_service, notification_service, payout_service, reconciliation_service

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifecycle ───────────────────────────────────────────────────────

async def startup(ctx: dict) -> None:
    ctx["app"] = await AppContext.create(settings, create_tables=False)
    logger.info("Worker context ready")


async def shutdown(ctx: dict) -> None:
    app = ctx.get("app")
    if app is not None:
        await app.shutdown()


# ── Jobs ────────────────────────────────────────────────────────────

async def payout_job(ctx: dict, payload: dict) -> dict:
    """Payload: {orderId, amount, freelancerId (user id)}."""
    app: AppContext = ctx["app"]
    logger.info(
        f"Processing payout for order {payload['orderId']}: "
        f"{payload['amount']} to freelancer {payload['freelancerId']}"
    )
    async with app.session_factory() as db:
        return await payout_service.run_payout(
            db,
            app.queue.enqueue_notification,
            order_id=payload["orderId"],
            amount=int(payload["amount"]),
            freelancer_user_id=payload["freelancerId"],
            job_id=ctx.get("job_id"),
        )


async def notification_job(ctx: dict, payload: dict) -> int:
    """Payload: {userId, type, data}."""
    app: AppContext = ctx["app"]
    async with app.session_factory() as db:
        return await notification_service.send_notification(
            db,
            user_id=payload["userId"],
            type=payload["type"],
            data=payload.get("data"),
        )


async def reconciliation_job(ctx: dict) -> dict:
    app: AppContext = ctx["app"]
    async with app.session_factory() as db:
        return await reconciliation_service.run_reconciliation(
            db,
            stale_verification_hours=app.settings.stale_verification_hours,
        )


async def cleanup_job(ctx: dict) -> dict:
    app: AppContext = ctx["app"]
    async with app.session_factory() as db:
        return await cleanup_service.run_cleanup(
            db,
            webhook_event_retention_days=app.settings.webhook_event_retention_days,
            audit_log_retention_days=app.settings.audit_log_retention_days,
            abandoned_order_days=app.settings.abandoned_order_days,
        )


# ── Worker settings ─────────────────────────────────────────────────

_redis_settings = RedisSettings.from_dsn(settings.redis_url or "redis://localhost:6379")


class _BaseWorkerSettings:
    redis_settings = _redis_settings
    on_startup = startup
    on_shutdown = shutdown


class PayoutWorkerSettings(_BaseWorkerSettings):
    queue_name = QUEUE_PAYOUTS
    functions = [payout_job]
    max_jobs = settings.payout_concurrency


class NotificationWorkerSettings(_BaseWorkerSettings):
    queue_name = QUEUE_NOTIFICATIONS
    functions = [notification_job]
    max_jobs = settings.notification_concurrency


class ReconciliationWorkerSettings(_BaseWorkerSettings):
    queue_name = QUEUE_RECONCILIATION
    functions = [reconciliation_job]
    max_jobs = settings.reconciliation_concurrency
    cron_jobs = [cron(reconciliation_job, hour=2, minute=0)]


class CleanupWorkerSettings(_BaseWorkerSettings):
    queue_name = QUEUE_CLEANUP
    functions = [cleanup_job]
    max_jobs = settings.cleanup_concurrency
    cron_jobs = [cron(cleanup_job, weekday="sun", hour=3, minute=0)]
