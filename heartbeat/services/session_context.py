"""
Explicit per-request session object.

A SessionContext is built from a verified access token and handed to the
code that needs identity or the admin flag. It exists from sign-in until
the auth session is revoked at sign-out; nothing about the caller is kept
in module state.
"""
import enum
import logging
from typing import Optional

from sqlalchemy.orm import Session

from heartbeat.models.profile import Profile
from heartbeat.models.user import AuthSession, User

logger = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    # Held by clients while a stored session is being restored
    AUTHENTICATING = "authenticating"
    AUTHENTICATED_NO_PROFILE = "authenticated-no-profile"
    AUTHENTICATED_WITH_PROFILE = "authenticated-with-profile"


PROFILE_UPDATABLE_FIELDS = frozenset({
    "first_name", "last_name", "blood_type", "phone",
    "address", "city", "state", "last_donation_date",
})


class SessionContext:
    def __init__(self, user: Optional[User] = None, auth_session: Optional[AuthSession] = None,
                 profile: Optional[Profile] = None):
        self.user = user
        self.auth_session = auth_session
        self.profile = profile

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and self.auth_session is not None and self.auth_session.is_active

    @property
    def state(self) -> SessionState:
        if not self.is_authenticated:
            return SessionState.UNAUTHENTICATED
        if self.profile is None:
            return SessionState.AUTHENTICATED_NO_PROFILE
        return SessionState.AUTHENTICATED_WITH_PROFILE

    @property
    def is_admin(self) -> bool:
        return self.state == SessionState.AUTHENTICATED_WITH_PROFILE and bool(self.profile.is_admin)

    @property
    def user_id(self) -> Optional[str]:
        return self.user.id if self.user is not None else None

    def refresh_profile(self, db: Session) -> Optional[Profile]:
        if self.user is None:
            return None
        self.profile = db.query(Profile).filter(Profile.id == self.user.id).first()
        return self.profile

    def update_profile(self, db: Session, updates: dict) -> Profile:
        """Apply owner-editable fields and reload the profile."""
        if self.profile is None:
            raise LookupError("No profile for the current session")

        forbidden = set(updates) - PROFILE_UPDATABLE_FIELDS
        if forbidden:
            raise ValueError(f"Fields not editable by the owner: {', '.join(sorted(forbidden))}")

        for field, value in updates.items():
            setattr(self.profile, field, value)
        db.commit()
        logger.info(f"Profile updated: {self.profile.id} ({', '.join(sorted(updates))})")
        return self.refresh_profile(db)
