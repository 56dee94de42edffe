from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import date, datetime
from heartbeat.models.profile import BloodType

class ProfileBase(BaseModel):
    first_name: str
    last_name: str
    blood_type: Optional[BloodType] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None

class ProfileUpdate(BaseModel):
    """Fields a profile owner may change. The admin flag is not among them."""
    first_name: Optional[str] = Field(None, min_length=1)
    last_name: Optional[str] = Field(None, min_length=1)
    blood_type: Optional[BloodType] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    last_donation_date: Optional[date] = None

    @field_validator('first_name', 'last_name')
    @classmethod
    def names_not_null(cls, v):
        # Omitting a name leaves it unchanged; an explicit null is rejected
        if v is None:
            raise ValueError("Name cannot be empty")
        return v

    class Config:
        extra = "forbid"

class ProfileResponse(ProfileBase):
    id: str
    is_admin: bool
    last_donation_date: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
