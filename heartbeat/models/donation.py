from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Enum, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from heartbeat.database.database import Base, generate_uuid, utcnow
from heartbeat.models.profile import BloodType, enum_values
import enum

class DonationStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REJECTED = "rejected"

class Donation(Base):
    __tablename__ = "blood_donations"
    __table_args__ = (CheckConstraint("units > 0", name="ck_blood_donations_units_positive"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    blood_type = Column(Enum(BloodType, name="bloodtype", values_callable=enum_values), nullable=False)
    donation_date = Column(Date, nullable=False)
    donation_center = Column(String, nullable=False)
    units = Column(Integer, nullable=False)
    status = Column(Enum(DonationStatus, name="donationstatus", values_callable=enum_values),
                    nullable=False, default=DonationStatus.PENDING)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    donor = relationship("Profile")
