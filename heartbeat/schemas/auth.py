from pydantic import BaseModel, Field
from typing import Optional
from heartbeat.schemas.profile import ProfileResponse

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

class SignUpRequest(BaseModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)

class SignUpResponse(BaseModel):
    user_id: str
    email: str

class LoginRequest(BaseModel):
    email: str
    password: str

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    profile: Optional[ProfileResponse] = None

class RefreshRequest(BaseModel):
    refresh_token: str

class PasswordResetRequest(BaseModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)

class PasswordResetConfirm(BaseModel):
    token: str
    new_password: str

class SessionStateResponse(BaseModel):
    state: str
    user_id: Optional[str] = None
    email: Optional[str] = None
    is_admin: bool = False
    profile: Optional[ProfileResponse] = None
