from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from heartbeat.database.database import get_db
from heartbeat.models.profile import Profile
from heartbeat.models.reward import RewardTransaction
from heartbeat.schemas.reward import RewardProgressResponse, RewardResponse, RewardTransactionResponse
from heartbeat.services.rewards import get_or_create_reward, reward_progress
from heartbeat.api.v1.endpoints.auth import get_current_profile

router = APIRouter()


def build_reward_response(db: Session, user_id: str) -> RewardResponse:
    reward = get_or_create_reward(db, user_id)
    # Persists the row when it was created just now; a no-op otherwise
    db.commit()
    transactions = db.query(RewardTransaction).filter(
        RewardTransaction.user_id == user_id
    ).order_by(RewardTransaction.created_at.desc()).all()
    return RewardResponse(
        user_id=user_id,
        badges=list(reward.badges or []),
        progress=RewardProgressResponse.model_validate(reward_progress(reward.points)),
        transactions=[RewardTransactionResponse.model_validate(t) for t in transactions],
    )


@router.get("", response_model=RewardResponse)
async def get_rewards(
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    """Points, derived level and progress, and the ledger (newest first)."""
    return build_reward_response(db, profile.id)
