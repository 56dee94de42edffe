from fastapi import APIRouter, Depends, HTTPException, WebSocket, status
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List
import logging
from heartbeat.database.database import get_db
from heartbeat.models.profile import Profile
from heartbeat.schemas.chat import (
    ChatMessageResponse,
    ChatRoomListResponse,
    MarkReadResponse,
    MessageCreate,
    UnreadCountResponse,
)
from heartbeat.services import chat_service
from heartbeat.services.chat_service import ChatPermissionError, MessageTimeline
from heartbeat.services.realtime import ChangeType, ChannelFilter, realtime_hub
from heartbeat.api.v1.endpoints.auth import get_current_profile
from heartbeat.api.v1.endpoints.realtime import authenticate_websocket, run_socket

logger = logging.getLogger(__name__)
router = APIRouter()

CHAT_MESSAGES_TABLE = "chat_messages"


def _require_participant(db: Session, room_id: str, user_id: str) -> None:
    try:
        chat_service.ensure_participant(db, room_id, user_id)
    except ChatPermissionError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not a participant of this chat room"
        )


@router.get("/rooms", response_model=ChatRoomListResponse)
async def list_rooms(
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    """The caller's conversations, most recent activity first."""
    return ChatRoomListResponse(rooms=chat_service.list_rooms(db, profile.id))


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    return UnreadCountResponse(unread_count=chat_service.unread_count(db, profile.id))


@router.get("/rooms/{room_id}/messages", response_model=List[ChatMessageResponse])
async def get_messages(
    room_id: str,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    """Room history, oldest first. Opening a room marks incoming messages read."""
    _require_participant(db, room_id, profile.id)
    chat_service.mark_room_read(db, room_id, profile.id)
    return chat_service.list_messages(db, room_id)


@router.post("/rooms/{room_id}/messages", response_model=ChatMessageResponse, status_code=status.HTTP_201_CREATED)
async def post_message(
    room_id: str,
    body: MessageCreate,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    try:
        return chat_service.send_message(db, room_id, profile.id, body.message)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ChatPermissionError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not a participant of this chat room"
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to send message in {room_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send message"
        )


@router.post("/rooms/{room_id}/read", response_model=MarkReadResponse)
async def mark_read(
    room_id: str,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    _require_participant(db, room_id, profile.id)
    updated = chat_service.mark_room_read(db, room_id, profile.id)
    return MarkReadResponse(chat_room_id=room_id, updated=updated)


@router.websocket("/rooms/{room_id}/ws")
async def chat_room_socket(websocket: WebSocket, room_id: str, db: Session = Depends(get_db)):
    """
    Live view of one conversation.

    Sends ``history`` once, then ``message`` for each new message and ``read``
    when a message's read flag flips. Clients send ``{"action": "send", "message": ...}``.
    """
    context = await authenticate_websocket(websocket, db)
    if context is None:
        return
    viewer_id = context.user_id
    if not chat_service.is_participant(db, room_id, viewer_id):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    # Subscribe before loading history; the timeline drops the overlap
    subscription = realtime_hub.subscribe(
        CHAT_MESSAGES_TABLE,
        ChangeType.ALL,
        ChannelFilter("chat_room_id", room_id),
    )
    timeline = MessageTimeline()
    try:
        await websocket.accept()
        chat_service.mark_room_read(db, room_id, viewer_id)
        timeline.extend(ChatMessageResponse.model_validate(m) for m in chat_service.list_messages(db, room_id))
        await websocket.send_json({
            "type": "history",
            "messages": [m.model_dump(mode="json") for m in timeline.messages],
        })

        async def forward():
            async for change in subscription:
                try:
                    message = ChatMessageResponse.model_validate(change.record)
                except ValidationError as e:
                    logger.warning(f"Skipping malformed chat message in {room_id}: {e.error_count()} error(s)")
                    continue
                outcome = timeline.upsert(message)
                if outcome == "inserted":
                    await websocket.send_json({"type": "message", "message": message.model_dump(mode="json")})
                    if message.sender_id != viewer_id:
                        try:
                            chat_service.mark_room_read(db, room_id, viewer_id)
                        except SQLAlchemyError as e:
                            db.rollback()
                            logger.error(f"Failed to mark {room_id} read for {viewer_id}: {e}")
                elif outcome == "updated":
                    await websocket.send_json({"type": "read", "message_id": message.id})

        async def receive():
            while True:
                data = await websocket.receive_json()
                if not isinstance(data, dict) or data.get("action") != "send":
                    continue
                try:
                    chat_service.send_message(db, room_id, viewer_id, data.get("message"))
                except ValueError as e:
                    await websocket.send_json({"type": "error", "detail": str(e)})
                except SQLAlchemyError as e:
                    db.rollback()
                    logger.error(f"Failed to send message in {room_id}: {e}")
                    await websocket.send_json({"type": "error", "detail": "Failed to send message"})

        await run_socket(forward(), receive())
    finally:
        subscription.close()
