"""Reverse geocoding for the emergency request form, plus geolocation error text."""
import enum
import logging
from typing import Optional

import httpx

from heartbeat.core.config import settings

logger = logging.getLogger(__name__)


class GeolocationErrorCode(int, enum.Enum):
    # Browser GeolocationPositionError codes
    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3


_BASE_MESSAGE = "Unable to retrieve your location."

GEOLOCATION_ERROR_MESSAGES = {
    GeolocationErrorCode.PERMISSION_DENIED:
        "Location access was denied. Please enable location services in your browser settings.",
    GeolocationErrorCode.POSITION_UNAVAILABLE:
        "Location information is unavailable. Please try again in a different area.",
    GeolocationErrorCode.TIMEOUT:
        "The request to get your location timed out. Please try again.",
}
_FALLBACK_MESSAGE = "Please allow location access or enter manually."


def geolocation_error_message(code: int) -> str:
    try:
        detail = GEOLOCATION_ERROR_MESSAGES[GeolocationErrorCode(code)]
    except ValueError:
        detail = _FALLBACK_MESSAGE
    return f"{_BASE_MESSAGE} {detail}"


def coordinates_label(latitude: float, longitude: float) -> str:
    return f"{latitude:.6f}, {longitude:.6f}"


async def reverse_geocode(latitude: float, longitude: float,
                          client: Optional[httpx.AsyncClient] = None) -> Optional[str]:
    """
    Look up a readable place name for coordinates.

    Best-effort: any HTTP or decoding failure is logged and yields None.
    """
    params = {
        "format": "json",
        "lat": latitude,
        "lon": longitude,
        "zoom": 18,
        "addressdetails": 1,
    }
    headers = {
        "Accept-Language": "en",
        "User-Agent": settings.GEOCODER_USER_AGENT,
    }

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=settings.GEOCODER_TIMEOUT_SECONDS)
    try:
        response = await client.get(settings.GEOCODER_URL, params=params, headers=headers)
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Reverse geocoding failed for {coordinates_label(latitude, longitude)}: {e}")
        return None
    finally:
        if owns_client:
            await client.aclose()

    name = data.get("display_name") if isinstance(data, dict) else None
    return name or None
