"""
Admin console. Every route is behind ``require_admin``; non-admins are
redirected to their dashboard rather than shown an error.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
from heartbeat.core.config import settings
from heartbeat.database.database import get_db
from heartbeat.models.donation import Donation, DonationStatus
from heartbeat.models.emergency_request import EmergencyRequest, EmergencyStatus
from heartbeat.models.profile import Profile
from heartbeat.models.reward import TransactionType
from heartbeat.schemas.dashboard import AdminStatsResponse
from heartbeat.schemas.donation import AdminDonationResponse, DonationStatusUpdate
from heartbeat.schemas.emergency_request import EmergencyRequestResponse, EmergencyStatusUpdate
from heartbeat.schemas.profile import ProfileResponse
from heartbeat.schemas.reward import RewardGrant, RewardResponse
from heartbeat.services.rewards import award_points
from heartbeat.services.session_context import SessionContext
from heartbeat.api.v1.endpoints.auth import require_admin
from heartbeat.api.v1.endpoints.emergency_requests import emergency_query, emergency_response
from heartbeat.api.v1.endpoints.rewards import build_reward_response

logger = logging.getLogger(__name__)
router = APIRouter()

RECENT_LIMIT = 5


def _full_name_matches(search: str):
    pattern = f"%{search.strip()}%"
    return (Profile.first_name + " " + Profile.last_name).ilike(pattern)


def _donation_query(db: Session):
    return db.query(Donation, Profile).join(
        Profile, Profile.id == Donation.user_id
    ).order_by(Donation.created_at.desc())


def _admin_donation(donation: Donation, donor: Optional[Profile]) -> AdminDonationResponse:
    response = AdminDonationResponse.model_validate(donation)
    if donor is not None:
        response.donor_name = donor.full_name
    return response


def _commit_or_500(db: Session, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Admin action failed ({action}): {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to {action}"
        )


@router.get("/stats", response_model=AdminStatsResponse)
async def get_stats(
    admin: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Headline counts and the most recent activity."""
    return AdminStatsResponse(
        total_users=db.query(Profile).count(),
        total_donations=db.query(Donation).count(),
        total_emergencies=db.query(EmergencyRequest).count(),
        open_emergencies=db.query(EmergencyRequest).filter(
            EmergencyRequest.status == EmergencyStatus.OPEN
        ).count(),
        pending_donations=db.query(Donation).filter(
            Donation.status == DonationStatus.PENDING
        ).count(),
        recent_donations=[_admin_donation(d, p) for d, p in _donation_query(db).limit(RECENT_LIMIT).all()],
        recent_emergencies=[emergency_response(r, p) for r, p in emergency_query(db).limit(RECENT_LIMIT).all()],
    )


@router.get("/users", response_model=List[ProfileResponse])
async def list_users(
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    admin: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    query = db.query(Profile)
    if search and search.strip():
        query = query.filter(_full_name_matches(search))
    return query.order_by(Profile.created_at.desc()).offset(skip).limit(limit).all()


@router.patch("/users/{user_id}/admin", response_model=ProfileResponse)
async def toggle_admin(
    user_id: str,
    admin: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Flip a user's admin flag. Admins cannot change their own."""
    if user_id == admin.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot change your own admin status"
        )
    profile = db.query(Profile).filter(Profile.id == user_id).first()
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    profile.is_admin = not profile.is_admin
    _commit_or_500(db, "update admin status")
    db.refresh(profile)

    logger.info(f"Admin flag for {user_id} set to {profile.is_admin} by {admin.user_id}")
    return profile


@router.get("/donations", response_model=List[AdminDonationResponse])
async def list_donations(
    status_filter: Optional[DonationStatus] = Query(None, alias="status"),
    search: Optional[str] = None,
    limit: int = 100,
    admin: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """All donations; search matches the donor's name or the donation center."""
    query = _donation_query(db)
    if status_filter is not None:
        query = query.filter(Donation.status == status_filter)
    if search and search.strip():
        query = query.filter(or_(
            _full_name_matches(search),
            Donation.donation_center.ilike(f"%{search.strip()}%"),
        ))
    return [_admin_donation(d, p) for d, p in query.limit(limit).all()]


@router.patch("/donations/{donation_id}/status", response_model=AdminDonationResponse)
async def update_donation_status(
    donation_id: str,
    body: DonationStatusUpdate,
    admin: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Complete or reject a pending donation. Completion credits the donor's points."""
    donation = db.query(Donation).filter(Donation.id == donation_id).first()
    if not donation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Donation not found")
    if donation.status != DonationStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Donation is already {donation.status.value}"
        )

    donation.status = body.status
    if body.status == DonationStatus.COMPLETED:
        award_points(
            db,
            donation.user_id,
            settings.REWARD_POINTS_PER_DONATION,
            TransactionType.DONATION,
            description=f"Donation at {donation.donation_center} on {donation.donation_date.isoformat()}",
            commit=False,
        )
    _commit_or_500(db, "update donation status")
    db.refresh(donation)

    logger.info(f"Donation {donation_id} marked {body.status.value} by {admin.user_id}")
    donor = db.query(Profile).filter(Profile.id == donation.user_id).first()
    return _admin_donation(donation, donor)


@router.get("/emergency-requests", response_model=List[EmergencyRequestResponse])
async def list_emergency_requests(
    status_filter: Optional[EmergencyStatus] = Query(None, alias="status"),
    search: Optional[str] = None,
    limit: int = 100,
    admin: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """All requests; search matches hospital, patient or requester name."""
    query = emergency_query(db)
    if status_filter is not None:
        query = query.filter(EmergencyRequest.status == status_filter)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            EmergencyRequest.hospital.ilike(pattern),
            EmergencyRequest.patient_name.ilike(pattern),
            _full_name_matches(search),
        ))
    return [emergency_response(r, p) for r, p in query.limit(limit).all()]


@router.patch("/emergency-requests/{request_id}/status", response_model=EmergencyRequestResponse)
async def update_emergency_status(
    request_id: str,
    body: EmergencyStatusUpdate,
    admin: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    row = emergency_query(db).filter(EmergencyRequest.id == request_id).first()
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Emergency request not found")
    request, requester = row
    if request.status != EmergencyStatus.OPEN:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Emergency request is already {request.status.value}"
        )

    request.status = body.status
    _commit_or_500(db, "update emergency request status")
    db.refresh(request)

    logger.info(f"Emergency request {request_id} marked {body.status.value} by {admin.user_id}")
    return emergency_response(request, requester)


@router.post("/rewards/{user_id}", response_model=RewardResponse, status_code=status.HTTP_201_CREATED)
async def grant_reward(
    user_id: str,
    body: RewardGrant,
    admin: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Manual grant for referrals, emergency help and the like."""
    if not db.query(Profile).filter(Profile.id == user_id).first():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    try:
        award_points(db, user_id, body.points, body.transaction_type, body.description, commit=False)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    _commit_or_500(db, "grant reward points")
    return build_reward_response(db, user_id)
