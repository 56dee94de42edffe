from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from heartbeat.database.database import Base, generate_uuid, utcnow

class ChatRoom(Base):
    """A conversation. The last-message time is computed from chat_messages."""
    __tablename__ = "chat_rooms"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    participants = relationship("ChatParticipant", back_populates="room")

class ChatParticipant(Base):
    __tablename__ = "chat_participants"
    __table_args__ = (UniqueConstraint("chat_room_id", "user_id", name="uq_chat_participants_room_user"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    chat_room_id = Column(String(36), ForeignKey("chat_rooms.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    room = relationship("ChatRoom", back_populates="participants")
    profile = relationship("Profile")

class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    chat_room_id = Column(String(36), ForeignKey("chat_rooms.id"), nullable=False, index=True)
    sender_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    message = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
