from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import date, datetime
from heartbeat.models.profile import BloodType
from heartbeat.models.donation import DonationStatus

class DonationCreate(BaseModel):
    blood_type: BloodType
    donation_date: date
    donation_center: str = Field(..., min_length=1)
    units: int = Field(1, gt=0)
    notes: Optional[str] = None

class DonationResponse(BaseModel):
    id: str
    user_id: str
    blood_type: BloodType
    donation_date: date
    donation_center: str
    units: int
    status: DonationStatus
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class AdminDonationResponse(DonationResponse):
    donor_name: Optional[str] = None

class DonationStatusUpdate(BaseModel):
    status: DonationStatus

    @field_validator('status')
    @classmethod
    def terminal_status(cls, v):
        if v == DonationStatus.PENDING:
            raise ValueError("Donations can only move to completed or rejected")
        return v
