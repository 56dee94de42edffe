from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session
from heartbeat.database.database import get_db
from heartbeat.models.donation import Donation
from heartbeat.models.emergency_request import EmergencyRequest, EmergencyStatus
from heartbeat.models.profile import Profile
from heartbeat.schemas.dashboard import DashboardResponse, DonationStats
from heartbeat.schemas.donation import DonationResponse
from heartbeat.schemas.reward import RewardProgressResponse
from heartbeat.services import chat_service
from heartbeat.services.rewards import get_or_create_reward, reward_progress
from heartbeat.api.v1.endpoints.auth import get_current_profile
from heartbeat.api.v1.endpoints.emergency_requests import emergency_query, emergency_response

router = APIRouter()

RECENT_LIMIT = 5


@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    """Landing data for a signed-in donor."""
    recent = db.query(Donation).filter(
        Donation.user_id == profile.id
    ).order_by(Donation.donation_date.desc(), Donation.created_at.desc()).limit(RECENT_LIMIT).all()

    # Totals cover every donation, not just the recent ones shown
    total_donations, total_units, last_donation = db.query(
        func.count(Donation.id),
        func.coalesce(func.sum(Donation.units), 0),
        func.max(Donation.donation_date),
    ).filter(Donation.user_id == profile.id).one()

    open_requests = emergency_query(db).filter(
        EmergencyRequest.status == EmergencyStatus.OPEN
    ).limit(RECENT_LIMIT).all()

    reward = get_or_create_reward(db, profile.id)
    db.commit()

    return DashboardResponse(
        recent_donations=[DonationResponse.model_validate(d) for d in recent],
        stats=DonationStats(
            total_donations=total_donations,
            total_units=int(total_units or 0),
            last_donation=last_donation,
        ),
        open_emergencies=[emergency_response(r, p) for r, p in open_requests],
        rewards=RewardProgressResponse.model_validate(reward_progress(reward.points)),
        unread_messages=chat_service.unread_count(db, profile.id),
    )
