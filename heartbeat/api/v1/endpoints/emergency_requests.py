from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
from heartbeat.database.database import get_db
from heartbeat.models.emergency_request import EmergencyRequest, EmergencyStatus
from heartbeat.models.profile import Profile
from heartbeat.schemas.emergency_request import (
    EmergencyRequestCreate,
    EmergencyRequestResponse,
    maps_url,
)
from heartbeat.api.v1.endpoints.auth import get_current_profile

logger = logging.getLogger(__name__)
router = APIRouter()

def emergency_response(request: EmergencyRequest, requester: Optional[Profile] = None) -> EmergencyRequestResponse:
    response = EmergencyRequestResponse.model_validate(request)
    if requester is not None:
        response.requester_name = requester.full_name
    response.maps_url = maps_url(request.latitude, request.longitude, request.hospital)
    return response

def emergency_query(db: Session):
    """Requests joined with their requester's profile, newest first."""
    return db.query(EmergencyRequest, Profile).join(
        Profile, Profile.id == EmergencyRequest.user_id
    ).order_by(EmergencyRequest.created_at.desc())

@router.get("", response_model=List[EmergencyRequestResponse])
async def list_emergency_requests(
    status_filter: Optional[EmergencyStatus] = Query(None, alias="status"),
    limit: int = 100,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    """All emergency requests, optionally by status."""
    query = emergency_query(db)
    if status_filter is not None:
        query = query.filter(EmergencyRequest.status == status_filter)
    return [emergency_response(req, requester) for req, requester in query.limit(limit).all()]

@router.get("/mine", response_model=List[EmergencyRequestResponse])
async def list_my_emergency_requests(
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    rows = emergency_query(db).filter(EmergencyRequest.user_id == profile.id).all()
    return [emergency_response(req, requester) for req, requester in rows]

@router.get("/{request_id}", response_model=EmergencyRequestResponse)
async def get_emergency_request(
    request_id: str,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    row = emergency_query(db).filter(EmergencyRequest.id == request_id).first()
    if not row:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Emergency request not found"
        )
    return emergency_response(*row)

@router.post("", response_model=EmergencyRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_emergency_request(
    body: EmergencyRequestCreate,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    """Open an emergency request. Matching donors and admins are alerted over the realtime channel."""
    contact_number = (body.contact_number or profile.phone or "").strip()
    if not contact_number:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A contact number is required"
        )

    request = EmergencyRequest(
        user_id=profile.id,
        blood_type=body.blood_type,
        units_needed=body.units_needed,
        hospital=body.hospital.strip(),
        patient_name=body.patient_name.strip(),
        contact_number=contact_number,
        urgency_level=body.urgency_level,
        notes=body.notes,
        status=EmergencyStatus.OPEN,
        latitude=body.latitude,
        longitude=body.longitude,
        location_name=body.location_name,
    )
    db.add(request)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to create emergency request for {profile.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create emergency request"
        )
    db.refresh(request)

    logger.info(f"Emergency request {request.id} opened by {profile.id} for {request.blood_type.value}")
    return emergency_response(request, profile)
