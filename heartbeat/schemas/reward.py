from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from heartbeat.models.reward import TransactionType

class RewardProgressResponse(BaseModel):
    points: int
    level: str
    level_threshold: int
    next_level: Optional[str] = None
    next_level_threshold: Optional[int] = None
    points_to_next_level: int
    progress_percentage: int

    class Config:
        from_attributes = True

class RewardTransactionResponse(BaseModel):
    id: str
    user_id: str
    points: int
    transaction_type: TransactionType
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class RewardResponse(BaseModel):
    user_id: str
    badges: List[str] = []
    progress: RewardProgressResponse
    transactions: List[RewardTransactionResponse] = []

class RewardGrant(BaseModel):
    points: int = Field(..., gt=0)
    transaction_type: TransactionType = TransactionType.OTHER
    description: Optional[str] = None

    @field_validator('transaction_type')
    @classmethod
    def manual_types_only(cls, v):
        if v == TransactionType.DONATION:
            raise ValueError("Donation points are awarded when a donation is completed")
        return v
