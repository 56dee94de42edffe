from pydantic import BaseModel
from typing import Optional, List
from datetime import date
from heartbeat.schemas.donation import DonationResponse, AdminDonationResponse
from heartbeat.schemas.emergency_request import EmergencyRequestResponse
from heartbeat.schemas.reward import RewardProgressResponse

class DonationStats(BaseModel):
    total_donations: int = 0
    total_units: int = 0
    last_donation: Optional[date] = None

class DashboardResponse(BaseModel):
    recent_donations: List[DonationResponse]
    stats: DonationStats
    open_emergencies: List[EmergencyRequestResponse]
    rewards: Optional[RewardProgressResponse] = None
    unread_messages: int = 0

class AdminStatsResponse(BaseModel):
    total_users: int
    total_donations: int
    total_emergencies: int
    open_emergencies: int
    pending_donations: int
    recent_donations: List[AdminDonationResponse]
    recent_emergencies: List[EmergencyRequestResponse]
