from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging
from heartbeat.database.database import get_db
from heartbeat.models.profile import Profile
from heartbeat.schemas.chat import ChatRoomIdResponse, ChatRoomRequest
from heartbeat.services import chat_service
from heartbeat.api.v1.endpoints.auth import get_current_profile

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/get_or_create_chat_room", response_model=ChatRoomIdResponse)
async def get_or_create_chat_room(
    body: ChatRoomRequest,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    """Find or open the two-person room for a pair of users. The caller must be one of them."""
    if profile.id not in (body.user1_id, body.user2_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only open chat rooms you take part in"
        )
    try:
        room_id = chat_service.get_or_create_chat_room(db, body.user1_id, body.user2_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return ChatRoomIdResponse(chat_room_id=room_id)
