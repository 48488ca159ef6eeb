"""
Upload metadata endpoints. Clients upload binaries straight to Cloudinary
and register the result here.
"""
import logging

from fastapi import APIRouter, Depends, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from context import get_mongo_db
from db_models import User
from domain.responses import success_response
from middleware.auth import get_current_user
from models import FileMetadataRequest
from services import upload_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def register_upload(
    body: FileMetadataRequest,
    user: User = Depends(get_current_user),
    mongo: AsyncIOMotorDatabase = Depends(get_mongo_db),
):
    record = await upload_service.register_file(
        mongo,
        uploader_id=user.id,
        public_id=body.public_id,
        url=body.url,
        filename=body.filename,
        content_type=body.content_type,
        size_bytes=body.size_bytes,
        folder=body.folder,
        order_id=body.order_id,
    )
    return success_response(data=record, message="File registered successfully")


@router.get("")
async def list_uploads(
    user: User = Depends(get_current_user),
    mongo: AsyncIOMotorDatabase = Depends(get_mongo_db),
):
    return success_response(data=await upload_service.list_files(mongo, user.id))
