from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ChatBackend.database import get_db
from ChatBackend.schemas.chat import (
    ChatMessageOut,
    ChatRoomOut,
    ChatRoomRequest,
    ChatRoomSummaryOut,
    MarkReadOut,
    MarkReadRequest,
    SendMessageRequest,
    UnreadCountOut,
)
from ChatBackend.services.chat_service import ChatService


router = APIRouter(tags=["chat"])


# Creates the room between two users, or returns the existing one
@router.post("/chatroom")
def create_or_get_chat_room(
    payload: ChatRoomRequest,
    db: Session = Depends(get_db),
) -> ChatRoomOut:
    svc = ChatService(db)
    return svc.create_or_get_room(user1_id=payload.user1_id, user2_id=payload.user2_id)


# Retrieves all chat rooms for a user with unread counts and last message previews
@router.get("/chatrooms/{user_id}")
def list_chat_rooms(
    user_id: int,
    db: Session = Depends(get_db),
) -> list[ChatRoomSummaryOut]:
    svc = ChatService(db)
    return svc.list_rooms(user_id=user_id)


# Retrieves all messages for a room; passing userId acknowledges the other participant's messages
@router.get("/messages/{chat_room_id}")
def get_chat_messages(
    chat_room_id: int,
    user_id: Optional[int] = Query(default=None, alias="userId"),
    db: Session = Depends(get_db),
) -> list[ChatMessageOut]:
    svc = ChatService(db)
    messages = svc.list_messages(chat_room_id=chat_room_id)
    if not user_id:
        return messages

    # Messages sent after the listing stay unread
    last_listed_id = max((m.id for m in messages), default=0)
    svc.mark_read(chat_room_id=chat_room_id, user_id=user_id, up_to_id=last_listed_id)
    return [
        m.model_copy(update={"is_read": True}) if m.sender.id != user_id else m
        for m in messages
    ]


@router.post("/messages/mark-read")
def mark_messages_read(
    payload: MarkReadRequest,
    db: Session = Depends(get_db),
) -> MarkReadOut:
    svc = ChatService(db)
    return svc.mark_read(chat_room_id=payload.chat_room_id, user_id=payload.user_id)


@router.get("/unread-count/{user_id}")
def get_unread_count(
    user_id: int,
    db: Session = Depends(get_db),
) -> UnreadCountOut:
    svc = ChatService(db)
    return svc.unread_count(user_id=user_id)


# Sends a message into a room the sender participates in
@router.post("/messages", status_code=status.HTTP_201_CREATED)
def send_chat_message(
    payload: SendMessageRequest,
    db: Session = Depends(get_db),
) -> ChatMessageOut:
    svc = ChatService(db)
    return svc.send_message(
        chat_room_id=payload.chat_room_id,
        sender_id=payload.sender_id,
        message=payload.message,
    )
