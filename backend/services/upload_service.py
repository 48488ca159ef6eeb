"""
File metadata registry. Binaries live in Cloudinary; only their metadata
is recorded here so chat messages and orders can reference them.
"""
import logging
from datetime import datetime
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from domain.constants import FILE_METADATA
from mongo import serialize_document

logger = logging.getLogger(__name__)


def _file_type(content_type: str) -> str:
    major = content_type.split("/", 1)[0].lower()
    return major if major in ("image", "video", "audio") else "document"


async def register_file(
    db: AsyncIOMotorDatabase,
    *,
    uploader_id: str,
    public_id: str,
    url: str,
    filename: str,
    content_type: str,
    size_bytes: int,
    folder: Optional[str] = None,
    order_id: Optional[str] = None,
) -> dict:
    doc = {
        "uploader_id": uploader_id,
        "public_id": public_id,
        "storage_url": url,
        "filename": filename,
        "content_type": content_type,
        "file_type": _file_type(content_type),
        "size_bytes": size_bytes,
        "folder": folder,
        "used_by": [order_id] if order_id else [],
        "created_at": datetime.utcnow(),
    }
    result = await db[FILE_METADATA].insert_one(doc)
    doc["_id"] = result.inserted_id
    logger.info(f"  📎 File registered: {public_id} ({size_bytes} bytes) by {uploader_id}")
    return serialize_document(doc)


async def list_files(db: AsyncIOMotorDatabase, uploader_id: str, limit: int = 100) -> list[dict]:
    cursor = db[FILE_METADATA].find({"uploader_id": uploader_id}).sort("created_at", -1).limit(limit)
    return [serialize_document(doc) async for doc in cursor]
