from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging
from heartbeat.database.database import get_db
from heartbeat.models.profile import Profile
from heartbeat.schemas.profile import ProfileResponse, ProfileUpdate
from heartbeat.api.v1.endpoints.auth import get_current_profile, get_session_context
from heartbeat.services.session_context import SessionContext

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("", response_model=ProfileResponse)
async def get_profile(profile: Profile = Depends(get_current_profile)):
    """Get the caller's profile."""
    return profile

@router.patch("", response_model=ProfileResponse)
async def update_profile(
    profile_update: ProfileUpdate,
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db)
):
    """Update the caller's own profile fields."""
    if context.profile is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Profile not found; sign in again to create it"
        )

    update_data = profile_update.model_dump(exclude_unset=True)
    try:
        return context.update_profile(db, update_data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Profile update failed for {context.user_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update profile"
        )

@router.post("/refresh", response_model=ProfileResponse)
async def refresh_profile(
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db)
):
    """Reload the profile from the store, e.g. after an admin changed it."""
    profile = context.refresh_profile(db)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile
