from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ChatBackend.errors import ConflictError
from ChatBackend.models.chat_models import ChatMessage, ChatRoom


logger = logging.getLogger(__name__)


def canonical_pair(user_a_id: int, user_b_id: int) -> tuple[int, int]:
    return (user_a_id, user_b_id) if user_a_id < user_b_id else (user_b_id, user_a_id)


# Get a room by id
def get_room(session: Session, room_id: int) -> Optional[ChatRoom]:
    return session.get(ChatRoom, room_id)


# Find the room for a pair in either stored order (rows written before canonical ordering included)
def find_room_by_pair(session: Session, user_a_id: int, user_b_id: int) -> Optional[ChatRoom]:
    stmt = (
        select(ChatRoom)
        .where(
            or_(
                and_(ChatRoom.user1_id == user_a_id, ChatRoom.user2_id == user_b_id),
                and_(ChatRoom.user1_id == user_b_id, ChatRoom.user2_id == user_a_id),
            )
        )
        .order_by(ChatRoom.id)
        .limit(1)
    )
    return session.execute(stmt).unique().scalar_one_or_none()


# Insert a canonical room; raises ConflictError when the unique pair index rejects it
def create_room(session: Session, user_a_id: int, user_b_id: int) -> ChatRoom:
    user1_id, user2_id = canonical_pair(user_a_id, user_b_id)
    room = ChatRoom(user1_id=user1_id, user2_id=user2_id)
    # Nested transaction so an IntegrityError here doesn't blow away the caller's transaction.
    try:
        with session.begin_nested():
            session.add(room)
            session.flush()
    except IntegrityError as e:
        raise ConflictError(f"Chat room for users {user1_id} and {user2_id} already exists") from e
    session.refresh(room)
    return room


# Get existing room for the pair or create it; a lost creation race re-reads the winner's row
def get_or_create_room(session: Session, user_a_id: int, user_b_id: int) -> tuple[ChatRoom, bool]:
    room = find_room_by_pair(session, user_a_id, user_b_id)
    if room:
        return room, False

    try:
        return create_room(session, user_a_id, user_b_id), True
    except ConflictError:
        logger.warning(f"Concurrent chat room creation for users {user_a_id}/{user_b_id}; returning existing room")
        existing = find_room_by_pair(session, user_a_id, user_b_id)
        if existing is None:
            raise
        return existing, False


# All rooms a user participates in
def get_rooms_for_user(session: Session, user_id: int) -> list[ChatRoom]:
    stmt = select(ChatRoom).where(or_(ChatRoom.user1_id == user_id, ChatRoom.user2_id == user_id))
    return list(session.execute(stmt).unique().scalars().all())


# Room ids -> number of unread messages sent by someone other than user_id
def get_unread_counts_by_room(session: Session, user_id: int, room_ids: list[int]) -> dict[int, int]:
    if not room_ids:
        return {}
    stmt = (
        select(ChatMessage.chat_room_id, func.count(ChatMessage.id))
        .where(
            ChatMessage.chat_room_id.in_(room_ids),
            ChatMessage.sender_id != user_id,
            ChatMessage.is_read.is_(False),
        )
        .group_by(ChatMessage.chat_room_id)
    )
    return {room_id: int(count) for room_id, count in session.execute(stmt).all()}


# Room ids -> latest message (highest id, so ties on timestamp stay deterministic)
def get_last_messages_by_room(session: Session, room_ids: list[int]) -> dict[int, ChatMessage]:
    if not room_ids:
        return {}
    subquery = (
        select(func.max(ChatMessage.id).label("last_id"))
        .where(ChatMessage.chat_room_id.in_(room_ids))
        .group_by(ChatMessage.chat_room_id)
        .subquery()
    )
    stmt = select(ChatMessage).join(subquery, ChatMessage.id == subquery.c.last_id)
    return {msg.chat_room_id: msg for msg in session.execute(stmt).unique().scalars().all()}


# Create a new chat message
def create_chat_message(session: Session, chat_room_id: int, sender_id: int, message: str) -> ChatMessage:
    msg = ChatMessage(
        chat_room_id = chat_room_id,
        sender_id = sender_id,
        message = message,
        is_read = False
    )
    session.add(msg)
    session.flush()
    session.refresh(msg)
    return msg


# Get chat history for a room, oldest first
def get_chat_history(session: Session, chat_room_id: int) -> list[ChatMessage]:
    stmt = (
        select(ChatMessage)
        .where(ChatMessage.chat_room_id == chat_room_id)
        .order_by(ChatMessage.timestamp, ChatMessage.id)
    )
    return list(session.execute(stmt).unique().scalars().all())


# Flip the other participant's unread messages to read; returns the number of rows changed
def mark_room_read(
    session: Session,
    chat_room_id: int,
    reader_id: int,
    up_to_id: Optional[int] = None,
) -> int:
    stmt = update(ChatMessage).where(
        ChatMessage.chat_room_id == chat_room_id,
        ChatMessage.sender_id != reader_id,
        ChatMessage.is_read.is_(False),
    )
    if up_to_id is not None:
        stmt = stmt.where(ChatMessage.id <= up_to_id)
    stmt = stmt.values(is_read=True).execution_options(synchronize_session=False)
    result = session.execute(stmt)
    return int(result.rowcount or 0)


# Total unread messages for a user across every room they belong to
def count_unread_for_user(session: Session, user_id: int) -> int:
    stmt = (
        select(func.count(ChatMessage.id))
        .join(ChatRoom, ChatMessage.chat_room_id == ChatRoom.id)
        .where(
            or_(ChatRoom.user1_id == user_id, ChatRoom.user2_id == user_id),
            ChatMessage.sender_id != user_id,
            ChatMessage.is_read.is_(False),
        )
    )
    return int(session.execute(stmt).scalar_one())
