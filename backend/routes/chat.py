"""
Chat endpoints (MongoDB-backed).

    GET  /chat/rooms                 - caller's rooms, most recent first
    POST /chat/rooms                 - get-or-create (201 new, 200 existing)
    GET  /chat/{chatId}/messages     - participant only
    POST /chat/{chatId}/messages     - participant only
    POST /chat/{chatId}/read         - mark the other side's messages read
"""
import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorDatabase

from context import get_mongo_db
from db_models import User
from domain.errors import ValidationError
from domain.enums import MessageType
from domain.responses import success_response
from middleware.auth import get_current_user
from models import ChatMessageRequest, ChatRoomCreateRequest
from services import chat_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


@router.get("/rooms")
async def list_rooms(
    user: User = Depends(get_current_user),
    mongo: AsyncIOMotorDatabase = Depends(get_mongo_db),
):
    return success_response(data=await chat_service.list_rooms(mongo, user.id))


@router.post("/rooms")
async def create_room(
    body: ChatRoomCreateRequest,
    user: User = Depends(get_current_user),
    mongo: AsyncIOMotorDatabase = Depends(get_mongo_db),
):
    room, created = await chat_service.get_or_create_room(
        mongo, user.id, body.participant_id, body.order_id
    )
    return JSONResponse(
        status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        content=success_response(data=room, message="Chat room created" if created else None),
    )


@router.get("/{chat_id}/messages")
async def list_messages(
    chat_id: str,
    user: User = Depends(get_current_user),
    mongo: AsyncIOMotorDatabase = Depends(get_mongo_db),
):
    return success_response(data=await chat_service.list_messages(mongo, chat_id, user.id))


@router.post("/{chat_id}/messages", status_code=status.HTTP_201_CREATED)
async def send_message(
    chat_id: str,
    body: ChatMessageRequest,
    user: User = Depends(get_current_user),
    mongo: AsyncIOMotorDatabase = Depends(get_mongo_db),
):
    if body.type == MessageType.TEXT and not body.content.strip():
        raise ValidationError("Message content is required")

    message = await chat_service.send_message(
        mongo,
        chat_id,
        user.id,
        content=body.content,
        message_type=body.type.value,
        attachments=body.attachments,
        order_id=body.order_id,
    )
    return success_response(data=message)


@router.post("/{chat_id}/read")
async def mark_read(
    chat_id: str,
    user: User = Depends(get_current_user),
    mongo: AsyncIOMotorDatabase = Depends(get_mongo_db),
):
    updated = await chat_service.mark_read(mongo, chat_id, user.id)
    return success_response(data={"updated": updated})
