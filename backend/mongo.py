"""
MongoDB document store (chat, projects, file metadata, audit events).

Async access via motor. Collections and their indexes are declared once at
startup by `ensure_indexes`; retention is enforced by TTL indexes.
"""
import logging
from datetime import datetime
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from domain.constants import ACTIVITY_LOGS, AUDIT_EVENTS, CHATS, FILE_METADATA, MESSAGES, PROJECTS

logger = logging.getLogger(__name__)

DAY_SECONDS = 24 * 60 * 60


def build_mongo_client(uri: str, timeout_seconds: float = 10.0) -> AsyncIOMotorClient:
    return AsyncIOMotorClient(uri, serverSelectionTimeoutMS=int(timeout_seconds * 1000))


async def ensure_indexes(
    db: AsyncIOMotorDatabase,
    *,
    message_ttl_days: int,
    activity_log_ttl_days: int,
) -> None:
    """Create collection indexes and TTL policies (idempotent)."""
    chats = db[CHATS]
    await chats.create_index([("participants", ASCENDING)])
    await chats.create_index([("order_id", ASCENDING)])
    await chats.create_index([("last_message_at", DESCENDING)])
    await chats.create_index([("created_at", DESCENDING)])

    messages = db[MESSAGES]
    await messages.create_index([("chat_id", ASCENDING)])
    await messages.create_index([("sender_id", ASCENDING)])
    await messages.create_index([("chat_id", ASCENDING), ("created_at", DESCENDING)])
    await messages.create_index([("read_by", ASCENDING)])

    activity = db[ACTIVITY_LOGS]
    await activity.create_index([("user_id", ASCENDING)])
    await activity.create_index([("target_type", ASCENDING), ("target_id", ASCENDING)])
    await activity.create_index([("action", ASCENDING), ("created_at", DESCENDING)])

    files = db[FILE_METADATA]
    await files.create_index([("uploader_id", ASCENDING)])
    await files.create_index([("file_type", ASCENDING)])
    await files.create_index([("created_at", DESCENDING)])
    await files.create_index([("storage_url", ASCENDING)])

    audit = db[AUDIT_EVENTS]
    await audit.create_index([("actor_id", ASCENDING)])
    await audit.create_index([("target_type", ASCENDING), ("target_id", ASCENDING)])
    await audit.create_index([("action", ASCENDING), ("created_at", DESCENDING)])

    projects = db[PROJECTS]
    await projects.create_index([("client_user_id", ASCENDING)])
    await projects.create_index([("status", ASCENDING), ("created_at", DESCENDING)])

    # TTL retention
    await messages.create_index(
        [("created_at", ASCENDING)], expireAfterSeconds=message_ttl_days * DAY_SECONDS
    )
    await activity.create_index(
        [("created_at", ASCENDING)], expireAfterSeconds=activity_log_ttl_days * DAY_SECONDS
    )

    logger.info("✅ MongoDB indexes ensured")


# ── Helpers ─────────────────────────────────────────────────────────

def parse_object_id(value: str) -> Optional[ObjectId]:
    """ObjectId for a path parameter, or None when it is malformed."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def serialize_document(doc: dict) -> dict:
    """JSON-ready copy of a Mongo document: `_id` → `id`, datetimes → ISO."""
    out = {"id": str(doc["_id"])} if "_id" in doc else {}
    for key, value in doc.items():
        if key == "_id":
            continue
        if isinstance(value, ObjectId):
            value = str(value)
        elif isinstance(value, datetime):
            value = value.isoformat()
        out[key] = value
    return out
