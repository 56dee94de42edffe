#!/usr/bin/env python3
"""
Create the first admin account (identity, profile and reward row).
Usage: python scripts/create_admin_user.py [email] [password]
"""
import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.exc import SQLAlchemyError
from heartbeat.database.database import SessionLocal, init_db
from heartbeat.models.user import User
from heartbeat.models.profile import Profile
from heartbeat.core.security import hash_password
from heartbeat.services.rewards import get_or_create_reward

DEFAULT_EMAIL = "admin@heartbeat.local"
DEFAULT_PASSWORD = "admin12345"

def create_admin_user(email: str, password: str) -> bool:
    """Create the admin, or promote an existing account. Returns False on failure."""
    init_db()
    db = SessionLocal()

    try:
        user = db.query(User).filter(User.email == email.lower()).first()
        if user is None:
            user = User(
                email=email.lower(),
                hashed_password=hash_password(password),
                first_name="System",
                last_name="Administrator",
                is_active=True,
            )
            db.add(user)
            db.flush()

        profile = db.query(Profile).filter(Profile.id == user.id).first()
        if profile is None:
            profile = Profile(id=user.id, first_name=user.first_name, last_name=user.last_name)
            db.add(profile)
        if profile.is_admin:
            print(f"Admin user already exists: {email}")
            return True
        profile.is_admin = True
        db.flush()
        get_or_create_reward(db, user.id)

        db.commit()
        print("Admin user ready")
        print(f"Email: {email}")
        if password == DEFAULT_PASSWORD:
            print("Please change the default password after first login!")
        return True

    except SQLAlchemyError as e:
        print(f"Error creating admin user: {e}")
        db.rollback()
        return False
    finally:
        db.close()

if __name__ == "__main__":
    email = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_EMAIL
    password = sys.argv[2] if len(sys.argv) > 2 else DEFAULT_PASSWORD
    sys.exit(0 if create_admin_user(email, password) else 1)
