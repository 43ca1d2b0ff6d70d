from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, Text, false, func
from sqlalchemy.orm import relationship

from ChatBackend.database import Base


# One room per unordered pair of users; the smaller id is always stored as user1_id
class ChatRoom(Base):
    __tablename__ = "chat_rooms"

    # DB-level uniqueness on the canonical pair survives concurrent create-or-get calls
    __table_args__ = (
        Index("ux_chat_rooms_user1_id_user2_id", "user1_id", "user2_id", unique=True),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user1_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    user2_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user1 = relationship("User", foreign_keys=[user1_id], lazy="joined")
    user2 = relationship("User", foreign_keys=[user2_id], lazy="joined")
    messages = relationship("ChatMessage", back_populates="room", cascade="all, delete-orphan", passive_deletes=True)

    def has_participant(self, user_id: int) -> bool:
        return user_id in (self.user1_id, self.user2_id)

    def __repr__(self):
        return f"<ChatRoom(id={self.id}, user1_id={self.user1_id}, user2_id={self.user2_id})>"


# Append-only message log; is_read only ever flips false -> true
class ChatMessage(Base):
    __tablename__ = "chat_messages"

    __table_args__ = (
        Index("ix_chat_messages_chat_room_id_timestamp", "chat_room_id", "timestamp"),
        Index("ix_chat_messages_chat_room_id_is_read", "chat_room_id", "is_read"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    chat_room_id = Column(Integer, ForeignKey("chat_rooms.id", ondelete="CASCADE"), nullable=False)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    message = Column(Text, nullable=False)
    timestamp = Column(DateTime(timezone=True), server_default=func.now())
    is_read = Column(Boolean, nullable=False, default=False, server_default=false())

    room = relationship("ChatRoom", back_populates="messages")
    sender = relationship("User", lazy="joined")
