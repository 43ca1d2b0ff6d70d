from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ChatBackend.crud import chat as chat_crud
from ChatBackend.crud import users as users_crud
from ChatBackend.errors import AuthorizationError, NotFoundError, ValidationError
from ChatBackend.models.chat_models import ChatMessage, ChatRoom
from ChatBackend.schemas.chat import (
    ChatMessageOut,
    ChatRoomOut,
    ChatRoomSummaryOut,
    MarkReadOut,
    UnreadCountOut,
)
from ChatBackend.schemas.users import UserOut


logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 5000


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _room_fields(room: ChatRoom) -> dict:
    return {
        "id": room.id,
        "user1": UserOut(id=room.user1.id, email=room.user1.email),
        "user2": UserOut(id=room.user2.id, email=room.user2.email),
        "created_at": _iso(room.created_at),
    }


def _message_out(msg: ChatMessage) -> ChatMessageOut:
    return ChatMessageOut(
        id=msg.id,
        chat_room=msg.chat_room_id,
        sender=UserOut(id=msg.sender.id, email=msg.sender.email),
        message=msg.message,
        timestamp=_iso(msg.timestamp),
        is_read=bool(msg.is_read),
    )


# Room registry, message store and unread accounting over one request-scoped session
class ChatService:
    # Initializes the service with a DB session used by CRUD helpers.
    def __init__(self, db: Session):
        self.db = db

    def _require_room(self, chat_room_id: int) -> ChatRoom:
        room = chat_crud.get_room(self.db, chat_room_id)
        if room is None:
            raise NotFoundError("Chat room not found")
        return room

    # Idempotent: both argument orders resolve to the single room for the pair
    def create_or_get_room(self, *, user1_id: Optional[int], user2_id: Optional[int]) -> ChatRoomOut:
        if not user1_id or not user2_id:
            raise ValidationError("Both user IDs are required")
        if user1_id == user2_id:
            raise ValidationError("Cannot create a chat room with yourself")
        for user_id in (user1_id, user2_id):
            if users_crud.get_user(self.db, user_id) is None:
                raise NotFoundError(f"User {user_id} not found")

        room, created = chat_crud.get_or_create_room(self.db, user1_id, user2_id)
        self.db.commit()
        if created:
            logger.info(f"Created chat room {room.id} for users {room.user1_id}/{room.user2_id}")
        return ChatRoomOut(**_room_fields(room))

    # Rooms for a user, most recent activity first
    def list_rooms(self, *, user_id: int) -> list[ChatRoomSummaryOut]:
        rooms = chat_crud.get_rooms_for_user(self.db, user_id)
        room_ids = [r.id for r in rooms]
        unread = chat_crud.get_unread_counts_by_room(self.db, user_id, room_ids)
        last_messages = chat_crud.get_last_messages_by_room(self.db, room_ids)

        def _activity(room: ChatRoom) -> tuple:
            last = last_messages.get(room.id)
            ts = last.timestamp if last is not None and last.timestamp else room.created_at
            return (ts.timestamp() if ts else 0.0, room.id)

        summaries = []
        for room in sorted(rooms, key=_activity, reverse=True):
            last = last_messages.get(room.id)
            summaries.append(
                ChatRoomSummaryOut(
                    **_room_fields(room),
                    unread_count=unread.get(room.id, 0),
                    last_message=last.message if last is not None else None,
                    last_message_time=_iso(last.timestamp) if last is not None else None,
                )
            )
        return summaries

    def send_message(
        self,
        *,
        chat_room_id: Optional[int],
        sender_id: Optional[int],
        message: Optional[str],
    ) -> ChatMessageOut:
        if not chat_room_id or not sender_id or not isinstance(message, str):
            raise ValidationError("Chat room ID, sender ID, and message are required")
        # Trimmed only for the checks; the body is stored as sent
        trimmed = message.strip()
        if not trimmed:
            raise ValidationError("Message content cannot be empty")
        if len(trimmed) > MAX_MESSAGE_LENGTH:
            raise ValidationError(f"Message too long. Max length is {MAX_MESSAGE_LENGTH} characters")

        # Membership is re-checked against storage before every insert
        room = chat_crud.get_room(self.db, chat_room_id)
        if room is None or not room.has_participant(sender_id):
            logger.warning(f"User {sender_id} rejected from sending to chat room {chat_room_id}")
            raise AuthorizationError("Unauthorized to send message to this chat room")

        msg = chat_crud.create_chat_message(self.db, chat_room_id, sender_id, message)
        self.db.commit()
        logger.info(f"Stored message {msg.id} in chat room {chat_room_id}")
        return _message_out(msg)

    # Pure read: acknowledging messages is a separate mark_read call
    def list_messages(self, *, chat_room_id: int) -> list[ChatMessageOut]:
        self._require_room(chat_room_id)
        return [_message_out(m) for m in chat_crud.get_chat_history(self.db, chat_room_id)]

    # up_to_id bounds the acknowledgment to messages the reader has actually been shown
    def mark_read(
        self,
        *,
        chat_room_id: Optional[int],
        user_id: Optional[int],
        up_to_id: Optional[int] = None,
    ) -> MarkReadOut:
        if not chat_room_id or not user_id:
            raise ValidationError("Chat room ID and user ID are required")
        room = self._require_room(chat_room_id)
        if not room.has_participant(user_id):
            logger.warning(f"User {user_id} rejected from marking chat room {chat_room_id} read")
            raise AuthorizationError("Unauthorized to read messages in this chat room")

        updated = chat_crud.mark_room_read(self.db, chat_room_id, user_id, up_to_id=up_to_id)
        self.db.commit()
        if updated:
            logger.info(f"User {user_id} read {updated} messages in chat room {chat_room_id}")
        return MarkReadOut(message="Messages marked as read", marked_read=updated)

    def unread_count(self, *, user_id: int) -> UnreadCountOut:
        return UnreadCountOut(unread_count=chat_crud.count_unread_for_user(self.db, user_id))
