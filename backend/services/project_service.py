"""
Client projects (job postings) stored in MongoDB.
"""
import logging
import re
from datetime import datetime
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from db_models import User
from domain.constants import PROJECTS
from domain.enums import UserRole
from domain.errors import NotFoundError, PermissionDeniedError
from mongo import parse_object_id, serialize_document

logger = logging.getLogger(__name__)

LIST_LIMIT = 100

UPDATABLE_FIELDS = (
    "title",
    "description",
    "category",
    "budget",
    "delivery_time",
    "skills",
    "attachments",
    "status",
)


async def create_project(db: AsyncIOMotorDatabase, user: User, fields: dict) -> dict:
    now = datetime.utcnow()
    doc = {
        "client_user_id": user.id,
        "title": fields["title"],
        "description": fields["description"],
        "category": fields["category"],
        "budget": float(fields["budget"]),
        "delivery_time": fields["delivery_time"],
        "skills": fields.get("skills") or [],
        "attachments": fields.get("attachments") or [],
        "status": "open",
        "created_at": now,
        "updated_at": now,
    }
    result = await db[PROJECTS].insert_one(doc)
    doc["_id"] = result.inserted_id
    logger.info(f"  📋 Project created: {result.inserted_id} by {user.id}")
    return serialize_document(doc)


async def list_projects(
    db: AsyncIOMotorDatabase,
    *,
    client_id: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
) -> list[dict]:
    query: dict = {}
    if client_id:
        query["client_user_id"] = client_id
    if status:
        query["status"] = status
    if search:
        query["title"] = {"$regex": re.escape(search), "$options": "i"}

    cursor = db[PROJECTS].find(query).sort("created_at", -1).limit(LIST_LIMIT)
    return [serialize_document(doc) async for doc in cursor]


async def _get_raw(db: AsyncIOMotorDatabase, project_id: str) -> dict:
    oid = parse_object_id(project_id)
    doc = await db[PROJECTS].find_one({"_id": oid}) if oid else None
    if not doc:
        raise NotFoundError("Project not found")
    return doc


async def get_project(db: AsyncIOMotorDatabase, project_id: str) -> dict:
    return serialize_document(await _get_raw(db, project_id))


async def update_project(db: AsyncIOMotorDatabase, project_id: str, user: User, changes: dict) -> dict:
    doc = await _get_raw(db, project_id)
    if user.role != UserRole.ADMIN.value and doc.get("client_user_id") != user.id:
        raise PermissionDeniedError("Access denied")

    update = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS and v is not None}
    update["updated_at"] = datetime.utcnow()
    await db[PROJECTS].update_one({"_id": doc["_id"]}, {"$set": update})
    return serialize_document(await db[PROJECTS].find_one({"_id": doc["_id"]}))
