"""Tests for recording donations, their history, admin review and the live donation feed."""
from heartbeat.models.profile import Profile
from heartbeat.models.reward import Reward, RewardTransaction


def record(client, user, **overrides):
    body = {
        "blood_type": "O+",
        "donation_date": "2026-09-01",
        "donation_center": "Red Cross Center",
        "units": 1,
    }
    body.update(overrides)
    return client.post("/api/v1/donations", json=body, headers=user["headers"])


def test_record_donation_is_pending_and_updates_profile(client, donor, db):
    response = record(client, donor, blood_type="O-", donation_date="2026-09-10", units=2)
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["units"] == 2

    profile = db.query(Profile).filter(Profile.id == donor["id"]).one()
    assert profile.last_donation_date.isoformat() == "2026-09-10"
    assert profile.blood_type.value == "O-"


def test_older_donation_keeps_latest_date(client, donor, db):
    record(client, donor, donation_date="2026-09-10")
    record(client, donor, donation_date="2026-01-05")
    profile = db.query(Profile).filter(Profile.id == donor["id"]).one()
    assert profile.last_donation_date.isoformat() == "2026-09-10"


def test_status_cannot_be_set_by_donor(client, donor):
    response = record(client, donor, status="completed")
    assert response.status_code == 201
    assert response.json()["status"] == "pending"


def test_invalid_donations_rejected(client, donor):
    assert record(client, donor, units=0).status_code == 422
    assert record(client, donor, blood_type="C+").status_code == 422
    assert record(client, donor, donation_center="").status_code == 422


def test_history_newest_first_and_private(client, donor, other_donor):
    record(client, donor, donation_date="2026-01-01", donation_center="First")
    record(client, donor, donation_date="2026-06-01", donation_center="Second")
    record(client, other_donor, blood_type="A-")

    history = client.get("/api/v1/donations", headers=donor["headers"]).json()
    assert [d["donation_center"] for d in history] == ["Second", "First"]

    donation_id = history[0]["id"]
    assert client.get(f"/api/v1/donations/{donation_id}", headers=donor["headers"]).status_code == 200
    assert client.get(f"/api/v1/donations/{donation_id}", headers=other_donor["headers"]).status_code == 404


def test_admin_completes_donation_and_awards_points(client, donor, admin, db):
    donation_id = record(client, donor).json()["id"]

    response = client.patch(f"/api/v1/admin/donations/{donation_id}/status",
                            json={"status": "completed"}, headers=admin["headers"])
    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    assert response.json()["donor_name"] == "Dana Donor"

    reward = db.query(Reward).filter(Reward.user_id == donor["id"]).one()
    assert reward.points == 100
    ledger = db.query(RewardTransaction).filter(RewardTransaction.user_id == donor["id"]).all()
    assert [t.transaction_type.value for t in ledger] == ["donation"]

    # Terminal states are final
    response = client.patch(f"/api/v1/admin/donations/{donation_id}/status",
                            json={"status": "rejected"}, headers=admin["headers"])
    assert response.status_code == 409


def test_rejected_donation_awards_nothing(client, donor, admin, db):
    donation_id = record(client, donor).json()["id"]
    response = client.patch(f"/api/v1/admin/donations/{donation_id}/status",
                            json={"status": "rejected"}, headers=admin["headers"])
    assert response.status_code == 200
    assert db.query(RewardTransaction).count() == 0

    response = client.patch(f"/api/v1/admin/donations/{donation_id}/status",
                            json={"status": "pending"}, headers=admin["headers"])
    assert response.status_code == 422


def test_donation_feed_streams_own_changes(client, donor, other_donor, admin):
    with client.websocket_connect(f"/api/v1/realtime/donations?token={donor['token']}") as ws:
        record(client, other_donor, blood_type="A-")
        donation_id = record(client, donor).json()["id"]

        event = ws.receive_json()
        assert event["type"] == "INSERT"
        assert event["donation"]["id"] == donation_id
        assert event["donation"]["status"] == "pending"

        client.patch(f"/api/v1/admin/donations/{donation_id}/status",
                     json={"status": "completed"}, headers=admin["headers"])
        event = ws.receive_json()
        assert event["type"] == "UPDATE"
        assert event["donation"]["status"] == "completed"

    # Getting the whole history reflects the same state without reconnecting
    history = client.get("/api/v1/donations", headers=donor["headers"]).json()
    assert history[0]["status"] == "completed"
