"""
Audit trail writes (audit_logs table).

Callers own the transaction: `record` only adds and flushes.
"""
import logging
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import AuditLog

logger = logging.getLogger(__name__)


async def record(
    db: AsyncSession,
    *,
    actor_id: str,
    action: str,
    target_type: str,
    target_id: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
) -> AuditLog:
    entry = AuditLog(
        actor_id=actor_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        details=details,
    )
    db.add(entry)
    await db.flush()
    logger.debug(f"Audit: {actor_id} {action} {target_type}:{target_id}")
    return entry


async def list_entries(
    db: AsyncSession,
    *,
    action: Optional[str] = None,
    target_id: Optional[str] = None,
    limit: int = 100,
) -> list[AuditLog]:
    stmt = select(AuditLog).order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit)
    if action:
        stmt = stmt.where(AuditLog.action == action)
    if target_id:
        stmt = stmt.where(AuditLog.target_id == target_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())
