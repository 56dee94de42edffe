from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from urllib.parse import quote_plus
from heartbeat.models.profile import BloodType
from heartbeat.models.emergency_request import EmergencyStatus, UrgencyLevel

class EmergencyRequestCreate(BaseModel):
    blood_type: BloodType
    units_needed: int = Field(1, gt=0)
    hospital: str = Field(..., min_length=1)
    patient_name: str = Field(..., min_length=1)
    contact_number: Optional[str] = None  # Falls back to the requester's phone
    urgency_level: UrgencyLevel = UrgencyLevel.MEDIUM
    notes: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    location_name: Optional[str] = None

class EmergencyRequestResponse(BaseModel):
    id: str
    user_id: str
    blood_type: BloodType
    units_needed: int
    hospital: str
    patient_name: str
    contact_number: str
    urgency_level: UrgencyLevel
    status: EmergencyStatus
    notes: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    location_name: Optional[str] = None
    created_at: Optional[datetime] = None
    requester_name: Optional[str] = None
    maps_url: Optional[str] = None

    class Config:
        from_attributes = True

def maps_url(latitude, longitude, hospital) -> Optional[str]:
    if latitude is not None and longitude is not None:
        return f"https://www.google.com/maps?q={latitude},{longitude}"
    if hospital:
        return f"https://www.google.com/maps/search/?api=1&query={quote_plus(hospital)}"
    return None

class EmergencyStatusUpdate(BaseModel):
    status: EmergencyStatus

    @field_validator('status')
    @classmethod
    def terminal_status(cls, v):
        if v == EmergencyStatus.OPEN:
            raise ValueError("Emergency requests can only move to fulfilled or closed")
        return v

class EmergencyAlertRecord(BaseModel):
    """Typed view of an emergency_requests row arriving on the change feed."""
    id: str
    user_id: str
    blood_type: BloodType
    units_needed: int
    hospital: str
    patient_name: str
    urgency_level: UrgencyLevel
    status: EmergencyStatus
    created_at: Optional[datetime] = None
