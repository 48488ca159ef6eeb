"""
Job queue producer (arq over Redis).

One arq queue per job family. Without REDIS_URL the producer is disabled:
enqueue calls log a warning and return None, and callers that need the work
done anyway (admin escrow release) run it inline.
"""
import logging
from typing import Any, Optional

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings

from domain.constants import (
    ALL_QUEUES,
    QUEUE_CLEANUP,
    QUEUE_NOTIFICATIONS,
    QUEUE_PAYOUTS,
    QUEUE_RECONCILIATION,
)

logger = logging.getLogger(__name__)

# Worker function names (see jobs/worker.py)
PAYOUT_JOB = "payout_job"
NOTIFICATION_JOB = "notification_job"
RECONCILIATION_JOB = "reconciliation_job"
CLEANUP_JOB = "cleanup_job"


class JobQueue:
    def __init__(self, pool: Optional[ArqRedis]):
        self._pool = pool

    @classmethod
    async def connect(cls, redis_url: str) -> "JobQueue":
        pool = await create_pool(RedisSettings.from_dsn(redis_url))
        return cls(pool)

    @property
    def enabled(self) -> bool:
        return self._pool is not None

    async def _enqueue(self, queue_name: str, function: str, *args: Any) -> Optional[str]:
        if self._pool is None:
            logger.warning(f"Skipping {function} on '{queue_name}': REDIS_URL not set")
            return None
        job = await self._pool.enqueue_job(function, *args, _queue_name=queue_name)
        if job is None:
            logger.info(f"{function} already queued on '{queue_name}'")
            return None
        logger.info(f"Queued {function} on '{queue_name}' (job {job.job_id})")
        return job.job_id

    # ── Producers ───────────────────────────────────────────────────

    async def enqueue_payout(self, *, order_id: str, amount: int, freelancer_id: str) -> Optional[str]:
        """`freelancer_id` is the freelancer's user id (wallet owner)."""
        payload = {"orderId": order_id, "amount": amount, "freelancerId": freelancer_id}
        return await self._enqueue(QUEUE_PAYOUTS, PAYOUT_JOB, payload)

    async def enqueue_notification(self, user_id: str, type: str, data: dict) -> Optional[str]:
        payload = {"userId": user_id, "type": type, "data": data}
        return await self._enqueue(QUEUE_NOTIFICATIONS, NOTIFICATION_JOB, payload)

    async def enqueue_reconciliation(self) -> Optional[str]:
        return await self._enqueue(QUEUE_RECONCILIATION, RECONCILIATION_JOB)

    async def enqueue_cleanup(self) -> Optional[str]:
        return await self._enqueue(QUEUE_CLEANUP, CLEANUP_JOB)

    # ── Introspection ───────────────────────────────────────────────

    async def stats(self) -> dict[str, dict]:
        """
        Per-queue job counts:
            {queue: {"queued": n, "completed": n, "failed": n}}
        """
        if self._pool is None:
            return {name: {"queued": 0, "completed": 0, "failed": 0, "enabled": False} for name in ALL_QUEUES}

        results = await self._pool.all_job_results()
        stats = {}
        for name in ALL_QUEUES:
            queued = await self._pool.queued_jobs(queue_name=name)
            finished = [r for r in results if getattr(r, "queue_name", None) == name]
            stats[name] = {
                "queued": len(queued),
                "completed": sum(1 for r in finished if r.success),
                "failed": sum(1 for r in finished if not r.success),
                "enabled": True,
            }
        return stats

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.aclose()
            self._pool = None
