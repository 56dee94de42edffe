"""Direct messaging between two profiles."""
import bisect
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from heartbeat.models.chat import ChatMessage, ChatParticipant, ChatRoom
from heartbeat.models.profile import Profile
from heartbeat.schemas.chat import ChatMessageResponse

logger = logging.getLogger(__name__)


class ChatPermissionError(Exception):
    """The user is not a participant of the room."""


def get_or_create_chat_room(db: Session, user1_id: str, user2_id: str) -> str:
    """
    Return the id of the two-person room shared by the users, creating it if needed.

    The pair is unordered: (a, b) and (b, a) resolve to the same room.
    """
    if user1_id == user2_id:
        raise ValueError("A chat room needs two different users")

    found = db.query(Profile.id).filter(Profile.id.in_([user1_id, user2_id])).count()
    if found != 2:
        raise LookupError("Both users must have a profile")

    rooms_of_first = db.query(ChatParticipant.chat_room_id).filter(ChatParticipant.user_id == user1_id)
    shared_rooms = (
        db.query(ChatParticipant.chat_room_id)
        .filter(
            ChatParticipant.user_id == user2_id,
            ChatParticipant.chat_room_id.in_(rooms_of_first.scalar_subquery()),
        )
        .order_by(ChatParticipant.created_at.asc())
        .all()
    )
    for (room_id,) in shared_rooms:
        size = db.query(ChatParticipant).filter(ChatParticipant.chat_room_id == room_id).count()
        if size == 2:
            return room_id

    room = ChatRoom()
    db.add(room)
    db.flush()
    db.add_all([
        ChatParticipant(chat_room_id=room.id, user_id=user1_id),
        ChatParticipant(chat_room_id=room.id, user_id=user2_id),
    ])
    db.commit()
    logger.info(f"Chat room {room.id} created for {user1_id} and {user2_id}")
    return room.id


def is_participant(db: Session, room_id: str, user_id: str) -> bool:
    return db.query(ChatParticipant).filter(
        ChatParticipant.chat_room_id == room_id,
        ChatParticipant.user_id == user_id,
    ).first() is not None


def ensure_participant(db: Session, room_id: str, user_id: str) -> None:
    if not is_participant(db, room_id, user_id):
        raise ChatPermissionError(f"User {user_id} is not in chat room {room_id}")


def send_message(db: Session, room_id: str, sender_id: str, text: Optional[str]) -> ChatMessage:
    """Store a message. Blank text is rejected before anything is written."""
    text = (text or "").strip()
    if not text:
        raise ValueError("Message cannot be empty")

    ensure_participant(db, room_id, sender_id)

    message = ChatMessage(chat_room_id=room_id, sender_id=sender_id, message=text, read=False)
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


def list_messages(db: Session, room_id: str) -> List[ChatMessage]:
    return (
        db.query(ChatMessage)
        .filter(ChatMessage.chat_room_id == room_id)
        .order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc())
        .all()
    )


def mark_room_read(db: Session, room_id: str, viewer_id: str) -> int:
    """
    Mark every unread message in the room sent by someone else as read.

    One commit for the whole batch; returns how many messages changed, so a
    repeated call returns 0.
    """
    unread = db.query(ChatMessage).filter(
        ChatMessage.chat_room_id == room_id,
        ChatMessage.sender_id != viewer_id,
        ChatMessage.read.is_(False),
    ).all()
    if not unread:
        return 0

    for message in unread:
        message.read = True
    db.commit()
    logger.debug(f"Marked {len(unread)} message(s) read in room {room_id} for {viewer_id}")
    return len(unread)


def _room_ids_for(db: Session, user_id: str):
    return db.query(ChatParticipant.chat_room_id).filter(ChatParticipant.user_id == user_id)


def unread_count(db: Session, user_id: str) -> int:
    return db.query(ChatMessage).filter(
        ChatMessage.chat_room_id.in_(_room_ids_for(db, user_id).scalar_subquery()),
        ChatMessage.read.is_(False),
        ChatMessage.sender_id != user_id,
    ).count()


def _as_utc(value: Optional[datetime]) -> datetime:
    if value is None:
        return datetime.min.replace(tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def list_rooms(db: Session, user_id: str) -> List[dict]:
    """Rooms of the user with the other participant, last message and unread count."""
    rooms = db.query(ChatRoom).filter(ChatRoom.id.in_(_room_ids_for(db, user_id).scalar_subquery())).all()

    summaries = []
    for room in rooms:
        other = next((p for p in room.participants if p.user_id != user_id), None)
        last = (
            db.query(ChatMessage)
            .filter(ChatMessage.chat_room_id == room.id)
            .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
            .first()
        )
        unread = db.query(func.count(ChatMessage.id)).filter(
            ChatMessage.chat_room_id == room.id,
            ChatMessage.read.is_(False),
            ChatMessage.sender_id != user_id,
        ).scalar()

        summaries.append({
            "id": room.id,
            "other_participant": {
                "user_id": other.user_id,
                "first_name": other.profile.first_name if other.profile else None,
                "last_name": other.profile.last_name if other.profile else None,
            } if other else None,
            "last_message": {
                "message": last.message,
                "sender_id": last.sender_id,
                "created_at": last.created_at,
            } if last else None,
            # Derived from the newest message rather than stored on the room
            "last_message_at": last.created_at if last else room.created_at,
            "unread_count": unread or 0,
        })

    summaries.sort(key=lambda s: _as_utc(s["last_message_at"]), reverse=True)
    return summaries


class MessageTimeline:
    """
    Ordered, de-duplicated view of a room's messages.

    History and live events can overlap or arrive out of order; merging by
    id keeps one copy of each message sorted by (created_at, id).
    """

    def __init__(self):
        self._keys: List[tuple] = []
        self._messages: List[ChatMessageResponse] = []
        self._by_id: Dict[str, ChatMessageResponse] = {}

    def __len__(self):
        return len(self._messages)

    @property
    def messages(self) -> List[ChatMessageResponse]:
        return list(self._messages)

    @staticmethod
    def _key(message: ChatMessageResponse) -> tuple:
        return (_as_utc(message.created_at), message.id)

    def upsert(self, message: ChatMessageResponse) -> Optional[str]:
        """Returns "inserted", "updated" (read flag changed) or None for a duplicate."""
        existing = self._by_id.get(message.id)
        if existing is not None:
            if message.read and not existing.read:
                existing.read = True
                return "updated"
            return None

        key = self._key(message)
        index = bisect.bisect_right(self._keys, key)
        self._keys.insert(index, key)
        self._messages.insert(index, message)
        self._by_id[message.id] = message
        return "inserted"

    def extend(self, messages) -> List[ChatMessageResponse]:
        """Merge a batch; returns the messages that were new."""
        added = []
        for message in messages:
            if self.upsert(message) == "inserted":
                added.append(message)
        return added
