from sqlalchemy import Column, Integer, String, Text, DateTime, Enum, ForeignKey, JSON, CheckConstraint
from heartbeat.database.database import Base, generate_uuid, utcnow
from heartbeat.models.profile import enum_values
import enum

class TransactionType(str, enum.Enum):
    DONATION = "donation"
    REFERRAL = "referral"
    EMERGENCY = "emergency"
    OTHER = "other"

class Reward(Base):
    """Points balance. The level is derived from points on read, never stored."""
    __tablename__ = "rewards"
    __table_args__ = (CheckConstraint("points >= 0", name="ck_rewards_points_non_negative"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), unique=True, nullable=False)
    points = Column(Integer, nullable=False, default=0)
    badges = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

class RewardTransaction(Base):
    __tablename__ = "reward_transactions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    points = Column(Integer, nullable=False)
    transaction_type = Column(Enum(TransactionType, name="transactiontype", values_callable=enum_values),
                              nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
