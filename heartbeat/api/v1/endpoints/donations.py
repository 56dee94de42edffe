from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List
import logging
from heartbeat.database.database import get_db
from heartbeat.models.donation import Donation, DonationStatus
from heartbeat.models.profile import Profile
from heartbeat.schemas.donation import DonationCreate, DonationResponse
from heartbeat.api.v1.endpoints.auth import get_current_profile

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("", response_model=List[DonationResponse])
async def get_donation_history(
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    """The caller's donations, most recent donation date first."""
    return db.query(Donation).filter(
        Donation.user_id == profile.id
    ).order_by(Donation.donation_date.desc(), Donation.created_at.desc()).all()

@router.post("", response_model=DonationResponse, status_code=status.HTTP_201_CREATED)
async def record_donation(
    donation: DonationCreate,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    """Record a donation. It stays pending until an admin reviews it."""
    db_donation = Donation(
        user_id=profile.id,
        blood_type=donation.blood_type,
        donation_date=donation.donation_date,
        donation_center=donation.donation_center.strip(),
        units=donation.units,
        notes=donation.notes,
        status=DonationStatus.PENDING,
    )
    db.add(db_donation)

    # Profile keeps the most recent donation date and the donor's blood type
    if profile.last_donation_date is None or donation.donation_date > profile.last_donation_date:
        profile.last_donation_date = donation.donation_date
    profile.blood_type = donation.blood_type or profile.blood_type

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to record donation for {profile.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record donation. Please try again."
        )
    db.refresh(db_donation)

    logger.info(f"Donation recorded: {db_donation.id} by {profile.id}")
    return db_donation

@router.get("/{donation_id}", response_model=DonationResponse)
async def get_donation(
    donation_id: str,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    donation = db.query(Donation).filter(Donation.id == donation_id).first()
    if not donation or (donation.user_id != profile.id and not profile.is_admin):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Donation not found"
        )
    return donation
