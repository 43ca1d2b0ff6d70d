from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from ChatBackend.schemas.users import UserOut


# Request body for create-or-get of the room between two users
class ChatRoomRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    user1_id: Optional[int] = Field(default=None, alias="user1Id")
    user2_id: Optional[int] = Field(default=None, alias="user2Id")


# Request body for sending a message into a room
class SendMessageRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    chat_room_id: Optional[int] = Field(default=None, alias="chatRoomId")
    sender_id: Optional[int] = Field(default=None, alias="senderId")
    message: Optional[str] = None


# Request body for acknowledging the other participant's messages
class MarkReadRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    chat_room_id: Optional[int] = Field(default=None, alias="chatRoomId")
    user_id: Optional[int] = Field(default=None, alias="userId")


# Room with both participants' public info
class ChatRoomOut(BaseModel):
    id: int
    user1: UserOut
    user2: UserOut
    created_at: Optional[str] = None


# Room row for a user's room list (adds unread count + last message preview)
class ChatRoomSummaryOut(ChatRoomOut):
    unread_count: int = 0
    last_message: Optional[str] = None
    last_message_time: Optional[str] = None


# Single chat message returned from history/send endpoints
class ChatMessageOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    id: int
    chat_room: int = Field(alias="chatRoom")
    sender: UserOut
    message: str
    timestamp: Optional[str] = None
    is_read: bool = False


class MarkReadOut(BaseModel):
    message: str
    marked_read: int


class UnreadCountOut(BaseModel):
    unread_count: int
