from fastapi import APIRouter, Depends, HTTPException, status
import logging
from heartbeat.models.profile import Profile
from heartbeat.schemas.geocode import LocateRequest, LocateResponse
from heartbeat.services.geocoding import coordinates_label, geolocation_error_message, reverse_geocode
from heartbeat.api.v1.endpoints.auth import get_current_profile

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/locate", response_model=LocateResponse)
async def locate(body: LocateRequest, profile: Profile = Depends(get_current_profile)):
    """
    Turn a browser position fix into a location name for the emergency form.

    A geolocation error code is answered with its user-facing message. When
    the lookup service is unavailable the coordinates themselves are used.
    """
    if body.error_code is not None:
        logger.info(f"Geolocation failed for {profile.id} with code {body.error_code}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=geolocation_error_message(body.error_code)
        )

    name = await reverse_geocode(body.latitude, body.longitude)
    return LocateResponse(
        latitude=body.latitude,
        longitude=body.longitude,
        location_name=name or coordinates_label(body.latitude, body.longitude),
        resolved=name is not None,
        accuracy=body.accuracy,
    )
