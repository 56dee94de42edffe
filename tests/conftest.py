"""Pytest configuration and fixtures."""
import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DEBUG"] = "true"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SMTP_HOST"] = ""

import pytest
from fastapi.testclient import TestClient

from heartbeat.database.database import Base, SessionLocal, engine, init_db
from heartbeat.main import app
from heartbeat.models.profile import Profile
from heartbeat.services.realtime import realtime_hub

PASSWORD = "donate-blood-1"


@pytest.fixture(autouse=True)
def fresh_db():
    init_db()
    yield
    realtime_hub.clear()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def signup_and_login(client, email, first_name="Test", last_name="Donor", blood_type=None, phone=None):
    """Register, sign in (which creates the profile) and optionally fill in the profile."""
    response = client.post("/api/v1/auth/signup", json={
        "email": email,
        "password": PASSWORD,
        "first_name": first_name,
        "last_name": last_name,
    })
    assert response.status_code == 201, response.text

    response = client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    assert response.status_code == 200, response.text
    tokens = response.json()
    headers = {"Authorization": f"Bearer {tokens['access_token']}"}

    updates = {}
    if blood_type:
        updates["blood_type"] = blood_type
    if phone:
        updates["phone"] = phone
    if updates:
        response = client.patch("/api/v1/profile", json=updates, headers=headers)
        assert response.status_code == 200, response.text

    return {
        "id": tokens["profile"]["id"],
        "token": tokens["access_token"],
        "refresh_token": tokens["refresh_token"],
        "headers": headers,
    }


def make_admin(db, user_id):
    profile = db.query(Profile).filter(Profile.id == user_id).first()
    profile.is_admin = True
    db.commit()


@pytest.fixture
def donor(client):
    return signup_and_login(client, "donor@example.com", "Dana", "Donor", blood_type="O+", phone="555-0100")


@pytest.fixture
def other_donor(client):
    return signup_and_login(client, "other@example.com", "Omar", "Other", blood_type="A-", phone="555-0101")


@pytest.fixture
def admin(client, db):
    user = signup_and_login(client, "admin@example.com", "Ada", "Admin")
    make_admin(db, user["id"])
    return user
