"""
User notifications. Delivery channels (email/push) are not wired yet; each
notification is logged and kept in the audit trail.
"""
import logging
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from domain.constants import SYSTEM_ACTOR
from services import audit

logger = logging.getLogger(__name__)


async def send_notification(
    db: AsyncSession,
    *,
    user_id: str,
    type: str,
    data: Optional[dict[str, Any]] = None,
) -> int:
    """Record a notification for `user_id`. Returns the audit row id."""
    logger.info(f"  🔔 Notification {type} → user {user_id}: {data}")
    entry = await audit.record(
        db,
        actor_id=SYSTEM_ACTOR,
        action="notification_sent",
        target_type="user",
        target_id=user_id,
        details={"type": type, "data": data or {}},
    )
    await db.commit()
    return entry.id
