"""Reward levels derived from points, and the points ledger."""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from heartbeat.models.reward import Reward, RewardTransaction, TransactionType

logger = logging.getLogger(__name__)

# (level, minimum points), ascending
LEVEL_THRESHOLDS = (
    ("Bronze", 0),
    ("Silver", 500),
    ("Gold", 1000),
    ("Platinum", 2000),
    ("Diamond", 5000),
)
MAX_LEVEL = LEVEL_THRESHOLDS[-1][0]

# Progress reported at the top level. Kept at 500 to match what existing
# clients render; see DESIGN.md before changing it.
DIAMOND_PROGRESS = 500


@dataclass(frozen=True)
class RewardProgress:
    points: int
    level: str
    level_threshold: int
    next_level: Optional[str]
    next_level_threshold: Optional[int]
    points_to_next_level: int
    progress_percentage: int


def _level_index(points: int) -> int:
    if points < 0:
        raise ValueError(f"Points cannot be negative: {points}")
    index = 0
    for i, (_, threshold) in enumerate(LEVEL_THRESHOLDS):
        if points >= threshold:
            index = i
    return index


def level_for_points(points: int) -> str:
    return LEVEL_THRESHOLDS[_level_index(points)][0]


def level_threshold(level: str) -> int:
    for name, threshold in LEVEL_THRESHOLDS:
        if name == level:
            return threshold
    raise ValueError(f"Unknown reward level: {level}")


def reward_progress(points: int) -> RewardProgress:
    index = _level_index(points)
    level, threshold = LEVEL_THRESHOLDS[index]

    if index == len(LEVEL_THRESHOLDS) - 1:
        return RewardProgress(
            points=points,
            level=level,
            level_threshold=threshold,
            next_level=None,
            next_level_threshold=None,
            points_to_next_level=0,
            progress_percentage=DIAMOND_PROGRESS,
        )

    next_level, next_threshold = LEVEL_THRESHOLDS[index + 1]
    percentage = round(100 * (points - threshold) / (next_threshold - threshold))
    return RewardProgress(
        points=points,
        level=level,
        level_threshold=threshold,
        next_level=next_level,
        next_level_threshold=next_threshold,
        points_to_next_level=next_threshold - points,
        progress_percentage=max(0, min(100, percentage)),
    )


def get_or_create_reward(db: Session, user_id: str) -> Reward:
    """Return the reward row for a profile, adding one (uncommitted) if missing."""
    reward = db.query(Reward).filter(Reward.user_id == user_id).first()
    if reward is None:
        reward = Reward(user_id=user_id, points=0, badges=[])
        db.add(reward)
        db.flush()
    return reward


def award_points(db: Session, user_id: str, points: int,
                 transaction_type: TransactionType,
                 description: Optional[str] = None,
                 commit: bool = True) -> RewardTransaction:
    """
    Append a ledger entry and raise the balance in the same transaction.

    With commit=False the caller owns the transaction, which lets a status
    change and its reward land atomically.
    """
    if points <= 0:
        raise ValueError("Awarded points must be positive")

    reward = get_or_create_reward(db, user_id)
    previous_level = level_for_points(reward.points)

    transaction = RewardTransaction(
        user_id=user_id,
        points=points,
        transaction_type=transaction_type,
        description=description,
    )
    db.add(transaction)
    reward.points = reward.points + points

    new_level = level_for_points(reward.points)
    if new_level != previous_level and new_level not in (reward.badges or []):
        # Reassign so the JSON column is flagged as modified
        reward.badges = list(reward.badges or []) + [new_level]

    if commit:
        db.commit()
        db.refresh(transaction)

    logger.info(f"Awarded {points} points ({transaction_type.value}) to {user_id}; balance {reward.points}")
    return transaction
