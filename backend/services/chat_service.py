"""
Chat rooms and messages (MongoDB).

Rooms are keyed by their participant pair (plus optional order); creating a
room that already exists returns the existing one. Only participants can
read or post, everyone else gets a 404 as if the room did not exist.
"""
import logging
from datetime import datetime
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from domain.constants import CHATS, MESSAGES
from domain.errors import NotFoundError, ValidationError
from mongo import parse_object_id, serialize_document

logger = logging.getLogger(__name__)

ROOM_LIST_LIMIT = 100
MESSAGE_LIST_LIMIT = 500


async def list_rooms(db: AsyncIOMotorDatabase, user_id: str) -> list[dict]:
    cursor = db[CHATS].find({"participants": user_id}).sort("last_message_at", -1).limit(ROOM_LIST_LIMIT)
    return [serialize_document(doc) async for doc in cursor]


async def get_or_create_room(
    db: AsyncIOMotorDatabase,
    user_id: str,
    participant_id: str,
    order_id: Optional[str] = None,
) -> tuple[dict, bool]:
    """
    Returns:
        (room, created)
    """
    if participant_id == user_id:
        raise ValidationError("Cannot open a chat with yourself")

    query: dict = {"participants": {"$all": [user_id, participant_id]}}
    if order_id:
        query["order_id"] = order_id

    existing = await db[CHATS].find_one(query)
    if existing:
        return serialize_document(existing), False

    now = datetime.utcnow()
    doc = {
        "participants": [user_id, participant_id],
        "order_id": order_id,
        "last_message_at": now,
        "created_at": now,
    }
    result = await db[CHATS].insert_one(doc)
    doc["_id"] = result.inserted_id
    logger.info(f"  💬 Chat room created: {result.inserted_id}")
    return serialize_document(doc), True


async def _room_for_participant(db: AsyncIOMotorDatabase, chat_id: str, user_id: str) -> dict:
    oid = parse_object_id(chat_id)
    chat = await db[CHATS].find_one({"_id": oid}) if oid else None
    if not chat or user_id not in chat.get("participants", []):
        raise NotFoundError("Chat not found")
    return chat


async def list_messages(db: AsyncIOMotorDatabase, chat_id: str, user_id: str) -> list[dict]:
    await _room_for_participant(db, chat_id, user_id)
    cursor = db[MESSAGES].find({"chat_id": chat_id}).sort("created_at", 1).limit(MESSAGE_LIST_LIMIT)
    return [serialize_document(doc) async for doc in cursor]


async def send_message(
    db: AsyncIOMotorDatabase,
    chat_id: str,
    user_id: str,
    *,
    content: str,
    message_type: str,
    attachments: list,
    order_id: Optional[str] = None,
) -> dict:
    chat = await _room_for_participant(db, chat_id, user_id)

    now = datetime.utcnow()
    doc = {
        "chat_id": chat_id,
        "sender_id": user_id,
        "type": message_type,
        "content": content,
        "attachments": attachments,
        "order_id": order_id or chat.get("order_id"),
        "created_at": now,
        "read_by": [],
    }
    result = await db[MESSAGES].insert_one(doc)
    doc["_id"] = result.inserted_id
    await db[CHATS].update_one({"_id": chat["_id"]}, {"$set": {"last_message_at": now}})
    return serialize_document(doc)


async def mark_read(db: AsyncIOMotorDatabase, chat_id: str, user_id: str) -> int:
    """Add the user to `read_by` on every message from the other side."""
    await _room_for_participant(db, chat_id, user_id)
    result = await db[MESSAGES].update_many(
        {"chat_id": chat_id, "sender_id": {"$ne": user_id}, "read_by": {"$ne": user_id}},
        {"$addToSet": {"read_by": user_id}},
    )
    return result.modified_count
