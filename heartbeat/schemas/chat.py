from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime

class ChatRoomRequest(BaseModel):
    user1_id: str
    user2_id: str

class ChatRoomIdResponse(BaseModel):
    chat_room_id: str

class MessageCreate(BaseModel):
    message: str

class ChatMessageResponse(BaseModel):
    id: str
    chat_room_id: str
    sender_id: str
    message: str
    read: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ParticipantInfo(BaseModel):
    user_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None

class LastMessage(BaseModel):
    message: str
    sender_id: str
    created_at: Optional[datetime] = None

class ChatRoomSummary(BaseModel):
    id: str
    other_participant: Optional[ParticipantInfo] = None
    last_message: Optional[LastMessage] = None
    last_message_at: Optional[datetime] = None
    unread_count: int = 0

class MarkReadResponse(BaseModel):
    chat_room_id: str
    updated: int

class UnreadCountResponse(BaseModel):
    unread_count: int

class ChatRoomListResponse(BaseModel):
    rooms: List[ChatRoomSummary]
