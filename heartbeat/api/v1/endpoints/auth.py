from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from typing import Optional
import logging
from heartbeat.core.exceptions import AdminAccessRedirect
from heartbeat.database.database import get_db
from heartbeat.models.profile import Profile
from heartbeat.schemas.auth import (
    LoginRequest,
    PasswordResetConfirm,
    PasswordResetRequest,
    RefreshRequest,
    SessionStateResponse,
    SignUpRequest,
    SignUpResponse,
    TokenResponse,
)
from heartbeat.schemas.profile import ProfileResponse
from heartbeat.services import auth_service
from heartbeat.services.auth_service import AuthError, SignUpError
from heartbeat.services.session_context import SessionContext

logger = logging.getLogger(__name__)
router = APIRouter()

bearer_scheme = HTTPBearer(auto_error=False)


async def get_session_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> SessionContext:
    """Resolve the bearer token into the caller's SessionContext."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return auth_service.resolve_session(db, credentials.credentials)
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_profile(context: SessionContext = Depends(get_session_context)) -> Profile:
    if context.profile is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Profile not found; sign in again to create it"
        )
    return context.profile


async def require_admin(context: SessionContext = Depends(get_session_context)) -> SessionContext:
    """Admin gate. Non-admins are redirected to their dashboard instead of getting an error."""
    if not context.is_admin:
        raise AdminAccessRedirect()
    return context


@router.post("/signup", response_model=SignUpResponse, status_code=status.HTTP_201_CREATED)
async def signup(body: SignUpRequest, db: Session = Depends(get_db)):
    """Register an identity. The profile is created at first sign-in."""
    try:
        user = auth_service.sign_up(db, body.email, body.password, body.first_name, body.last_name)
    except SignUpError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return SignUpResponse(user_id=user.id, email=user.email)


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: Session = Depends(get_db)):
    try:
        user, auth_session, profile = auth_service.sign_in(db, body.email, body.password)
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    tokens = auth_service.issue_tokens(user, auth_session)
    return TokenResponse(**tokens, profile=ProfileResponse.model_validate(profile))


@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, db: Session = Depends(get_db)):
    try:
        user, auth_session = auth_service.refresh_session(db, body.refresh_token)
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    tokens = auth_service.issue_tokens(user, auth_session)
    profile = db.query(Profile).filter(Profile.id == user.id).first()
    return TokenResponse(**tokens, profile=ProfileResponse.model_validate(profile) if profile else None)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db)
):
    """End the auth session; its tokens stop working."""
    auth_service.sign_out(db, context.auth_session)


@router.get("/session", response_model=SessionStateResponse)
async def get_session_state(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
):
    """Report where the caller is in the sign-in lifecycle. Never fails on a bad token."""
    context = SessionContext()
    if credentials is not None:
        try:
            context = auth_service.resolve_session(db, credentials.credentials)
        except AuthError as e:
            logger.info(f"Session lookup with unusable token: {e}")

    return SessionStateResponse(
        state=context.state.value,
        user_id=context.user_id if context.is_authenticated else None,
        email=context.user.email if context.is_authenticated else None,
        is_admin=context.is_admin,
        profile=ProfileResponse.model_validate(context.profile) if context.profile else None,
    )


@router.post("/password-reset", status_code=status.HTTP_202_ACCEPTED)
async def password_reset(body: PasswordResetRequest, request: Request, db: Session = Depends(get_db)):
    """Send a reset link. The answer does not reveal whether the account exists."""
    origin = request.headers.get("origin")
    auth_service.request_password_reset(db, body.email, origin)
    return {"message": "If the account exists, a password reset email has been sent"}


@router.post("/reset-password")
async def reset_password(body: PasswordResetConfirm, db: Session = Depends(get_db)):
    try:
        auth_service.reset_password(db, body.token, body.new_password)
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"message": "Password updated; please sign in again"}
