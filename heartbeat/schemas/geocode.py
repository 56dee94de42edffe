from pydantic import BaseModel, Field, model_validator
from typing import Optional

class LocateRequest(BaseModel):
    """Either a browser position fix or the browser's geolocation error code."""
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    accuracy: Optional[float] = Field(None, ge=0)
    error_code: Optional[int] = None

    @model_validator(mode='after')
    def position_or_error(self):
        if self.error_code is None and (self.latitude is None or self.longitude is None):
            raise ValueError("Provide latitude and longitude, or an error_code")
        return self

class LocateResponse(BaseModel):
    latitude: float
    longitude: float
    location_name: str
    resolved: bool
    accuracy: Optional[float] = None
