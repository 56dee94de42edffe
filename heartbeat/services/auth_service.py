"""Sign-up, sign-in, sign-out, session resolution and password resets."""
import logging
from typing import Optional, Tuple

from fastapi import HTTPException
from sqlalchemy.orm import Session

from heartbeat.core.config import settings
from heartbeat.core.security import (
    ACCESS_TOKEN_TYPE,
    PASSWORD_RESET_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    create_access_token,
    create_password_reset_token,
    create_refresh_token,
    hash_password,
    password_fingerprint,
    verify_password,
    verify_token,
)
from heartbeat.database.database import utcnow
from heartbeat.models.profile import Profile
from heartbeat.models.user import AuthSession, User
from heartbeat.services.mailer import send_email
from heartbeat.services.rewards import get_or_create_reward
from heartbeat.services.session_context import SessionContext

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Credential or token problem; shown to the user as-is."""


class SignUpError(Exception):
    pass


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_password(password: str) -> None:
    if len(password) < settings.PASSWORD_MIN_LENGTH:
        raise SignUpError(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters")


def sign_up(db: Session, email: str, password: str, first_name: str, last_name: str) -> User:
    email = normalize_email(email)
    validate_password(password)

    if db.query(User).filter(User.email == email).first():
        raise SignUpError("Email already registered")

    user = User(
        email=email,
        hashed_password=hash_password(password),
        first_name=first_name.strip(),
        last_name=last_name.strip(),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"User signed up: {user.email}")
    return user


def ensure_profile(db: Session, user: User) -> Profile:
    """Create the profile (and its reward row) on first sign-in."""
    profile = db.query(Profile).filter(Profile.id == user.id).first()
    if profile is not None:
        return profile

    profile = Profile(id=user.id, first_name=user.first_name, last_name=user.last_name, is_admin=False)
    db.add(profile)
    db.flush()
    get_or_create_reward(db, user.id)
    db.commit()
    db.refresh(profile)
    logger.info(f"Profile created for {user.email}")
    return profile


def issue_tokens(user: User, auth_session: AuthSession) -> dict:
    claims = {"sub": user.id, "sid": auth_session.id}
    return {
        "access_token": create_access_token(claims),
        "refresh_token": create_refresh_token(claims),
        "token_type": "bearer",
    }


def sign_in(db: Session, email: str, password: str) -> Tuple[User, AuthSession, Profile]:
    user = db.query(User).filter(User.email == normalize_email(email)).first()
    if user is None or not verify_password(password, user.hashed_password):
        logger.warning(f"Failed sign-in for {normalize_email(email)}")
        raise AuthError("Invalid email or password")
    if not user.is_active:
        raise AuthError("Account is disabled")

    auth_session = AuthSession(user_id=user.id)
    db.add(auth_session)
    db.commit()
    db.refresh(auth_session)

    profile = ensure_profile(db, user)
    logger.info(f"User signed in: {user.email}")
    return user, auth_session, profile


def _token_payload(token: str, expected_type: str) -> dict:
    try:
        return verify_token(token, expected_type)
    except HTTPException as e:
        raise AuthError(e.detail)


def _load_session(db: Session, payload: dict) -> Tuple[User, AuthSession]:
    user = db.query(User).filter(User.id == payload.get("sub")).first()
    auth_session = db.query(AuthSession).filter(AuthSession.id == payload.get("sid")).first()
    if user is None or auth_session is None or auth_session.user_id != user.id:
        raise AuthError("Session not found")
    if not auth_session.is_active:
        raise AuthError("Session has been signed out")
    if not user.is_active:
        raise AuthError("Account is disabled")
    return user, auth_session


def resolve_session(db: Session, access_token: str) -> SessionContext:
    """Build the SessionContext for a bearer token."""
    payload = _token_payload(access_token, ACCESS_TOKEN_TYPE)
    user, auth_session = _load_session(db, payload)
    context = SessionContext(user=user, auth_session=auth_session)
    context.refresh_profile(db)
    return context


def refresh_session(db: Session, refresh_token: str) -> Tuple[User, AuthSession]:
    payload = _token_payload(refresh_token, REFRESH_TOKEN_TYPE)
    return _load_session(db, payload)


def sign_out(db: Session, auth_session: AuthSession) -> None:
    if auth_session.revoked_at is None:
        auth_session.revoked_at = utcnow()
        db.commit()
    logger.info(f"Session {auth_session.id} signed out")


def reset_site_url(origin: Optional[str]) -> str:
    """Use the caller's Origin for reset links only when it is an allowed origin."""
    if origin:
        candidate = origin.rstrip("/")
        if candidate in settings.cors_origins_list:
            return candidate
        logger.warning(f"Ignoring untrusted origin for password reset: {origin}")
    return settings.SITE_URL.rstrip("/")


def request_password_reset(db: Session, email: str, origin: Optional[str]) -> Optional[str]:
    """
    Mail a reset link pointing at ``<origin>/reset-password``.

    The origin must be one of the configured CORS origins, otherwise the
    link points at ``SITE_URL``.

    Returns the link, or None when no account matches. Callers answer the
    same way in both cases.
    """
    user = db.query(User).filter(User.email == normalize_email(email)).first()
    if user is None:
        logger.info(f"Password reset requested for unknown email {normalize_email(email)}")
        return None

    site_url = reset_site_url(origin)
    token = create_password_reset_token(user.id, user.hashed_password)
    link = f"{site_url}/reset-password?token={token}"
    logger.info(f"Sending password reset for {user.email} with redirect to {site_url}/reset-password")
    send_email(
        user.email,
        "Reset your HeartBeat password",
        f"Follow this link to choose a new password:\n\n{link}\n\n"
        f"The link expires in {settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES} minutes.",
    )
    return link


def reset_password(db: Session, token: str, new_password: str) -> User:
    payload = _token_payload(token, PASSWORD_RESET_TOKEN_TYPE)
    user = db.query(User).filter(User.id == payload.get("sub")).first()
    if user is None:
        raise AuthError("Account not found")
    if payload.get("pwh") != password_fingerprint(user.hashed_password):
        raise AuthError("Reset link has already been used")
    try:
        validate_password(new_password)
    except SignUpError as e:
        raise AuthError(str(e))

    user.hashed_password = hash_password(new_password)
    # Existing sessions end with the old password
    now = utcnow()
    for auth_session in user.sessions.filter(AuthSession.revoked_at.is_(None)):
        auth_session.revoked_at = now
    db.commit()
    logger.info(f"Password reset for {user.email}")
    return user
