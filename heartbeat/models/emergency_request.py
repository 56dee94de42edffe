from sqlalchemy import Column, Integer, String, Text, Float, DateTime, Enum, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from heartbeat.database.database import Base, generate_uuid, utcnow
from heartbeat.models.profile import BloodType, enum_values
import enum

class UrgencyLevel(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

class EmergencyStatus(str, enum.Enum):
    OPEN = "open"
    FULFILLED = "fulfilled"
    CLOSED = "closed"

class EmergencyRequest(Base):
    __tablename__ = "emergency_requests"
    __table_args__ = (CheckConstraint("units_needed > 0", name="ck_emergency_requests_units_positive"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    blood_type = Column(Enum(BloodType, name="bloodtype", values_callable=enum_values), nullable=False)
    units_needed = Column(Integer, nullable=False)
    hospital = Column(String, nullable=False)
    patient_name = Column(String, nullable=False)
    contact_number = Column(String, nullable=False)
    urgency_level = Column(Enum(UrgencyLevel, name="urgencylevel", values_callable=enum_values),
                           nullable=False, default=UrgencyLevel.MEDIUM)
    status = Column(Enum(EmergencyStatus, name="emergencystatus", values_callable=enum_values),
                    nullable=False, default=EmergencyStatus.OPEN, index=True)
    notes = Column(Text, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    location_name = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    requester = relationship("Profile")
