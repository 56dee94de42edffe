"""Tests for the admin console and the admin gate."""
from tests.conftest import signup_and_login
from tests.test_donations import record
from tests.test_emergency_requests import open_request


def test_non_admin_is_redirected_to_dashboard(client, donor):
    for path in ("/api/v1/admin/stats", "/api/v1/admin/users", "/api/v1/admin/donations"):
        response = client.get(path, headers=donor["headers"], follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/api/v1/dashboard"


def test_admin_gate_requires_authentication(client):
    assert client.get("/api/v1/admin/stats").status_code == 401


def test_stats(client, donor, other_donor, admin):
    record(client, donor)
    record(client, other_donor, blood_type="A-")
    open_request(client, donor)

    response = client.get("/api/v1/admin/stats", headers=admin["headers"])
    assert response.status_code == 200
    data = response.json()
    assert data["total_users"] == 3
    assert data["total_donations"] == 2
    assert data["pending_donations"] == 2
    assert data["total_emergencies"] == 1
    assert data["open_emergencies"] == 1
    assert {d["donor_name"] for d in data["recent_donations"]} == {"Dana Donor", "Omar Other"}
    assert data["recent_emergencies"][0]["requester_name"] == "Dana Donor"


def test_user_search_by_full_name(client, donor, other_donor, admin):
    response = client.get("/api/v1/admin/users?search=dana don", headers=admin["headers"])
    assert [u["id"] for u in response.json()] == [donor["id"]]
    assert len(client.get("/api/v1/admin/users", headers=admin["headers"]).json()) == 3


def test_toggle_admin(client, donor, admin):
    url = f"/api/v1/admin/users/{donor['id']}/admin"
    assert client.patch(url, headers=admin["headers"]).json()["is_admin"] is True
    assert client.get("/api/v1/admin/stats", headers=donor["headers"]).status_code == 200
    assert client.patch(url, headers=admin["headers"]).json()["is_admin"] is False

    response = client.patch(f"/api/v1/admin/users/{admin['id']}/admin", headers=admin["headers"])
    assert response.status_code == 400
    assert client.patch("/api/v1/admin/users/missing/admin", headers=admin["headers"]).status_code == 404


def test_donation_search_and_filter(client, donor, other_donor, admin):
    record(client, donor, donation_center="Lakeside Clinic")
    record(client, other_donor, blood_type="A-")

    by_center = client.get("/api/v1/admin/donations?search=lakeside", headers=admin["headers"]).json()
    assert [d["donation_center"] for d in by_center] == ["Lakeside Clinic"]
    by_name = client.get("/api/v1/admin/donations?search=omar", headers=admin["headers"]).json()
    assert [d["donor_name"] for d in by_name] == ["Omar Other"]
    assert client.get("/api/v1/admin/donations?status=completed", headers=admin["headers"]).json() == []


def test_emergency_search(client, donor, admin):
    open_request(client, donor, hospital="St. Mary's", patient_name="Jo")
    open_request(client, donor, hospital="General", patient_name="Sam")

    found = client.get("/api/v1/admin/emergency-requests?search=mary", headers=admin["headers"]).json()
    assert [r["patient_name"] for r in found] == ["Jo"]
    found = client.get("/api/v1/admin/emergency-requests?search=Dana&status=open", headers=admin["headers"]).json()
    assert len(found) == 2


def test_manual_reward_grant(client, donor, admin):
    response = client.post(f"/api/v1/admin/rewards/{donor['id']}",
                           json={"points": 600, "transaction_type": "referral", "description": "Referred 3 friends"},
                           headers=admin["headers"])
    assert response.status_code == 201
    data = response.json()
    assert data["progress"]["points"] == 600
    assert data["progress"]["level"] == "Silver"
    assert data["badges"] == ["Silver"]

    response = client.post(f"/api/v1/admin/rewards/{donor['id']}",
                           json={"points": 50, "transaction_type": "emergency"}, headers=admin["headers"])
    assert response.status_code == 201

    bad = [
        {"points": 0},
        {"points": -5},
        {"points": 10, "transaction_type": "donation"},
    ]
    for body in bad:
        response = client.post(f"/api/v1/admin/rewards/{donor['id']}", json=body, headers=admin["headers"])
        assert response.status_code == 422
    assert client.post("/api/v1/admin/rewards/missing", json={"points": 5},
                       headers=admin["headers"]).status_code == 404


def test_dashboard(client, donor, other_donor):
    record(client, donor, donation_date="2026-01-01", units=2)
    for month in range(2, 8):
        record(client, donor, donation_date=f"2026-0{month}-01")
    open_request(client, other_donor)

    response = client.get("/api/v1/dashboard", headers=donor["headers"])
    assert response.status_code == 200
    data = response.json()
    assert len(data["recent_donations"]) == 5
    assert data["recent_donations"][0]["donation_date"] == "2026-07-01"
    assert data["stats"] == {"total_donations": 7, "total_units": 8, "last_donation": "2026-07-01"}
    assert len(data["open_emergencies"]) == 1
    assert data["rewards"]["level"] == "Bronze"
    assert data["unread_messages"] == 0


def test_unknown_paths_redirect_home(client):
    response = client.get("/no/such/page", follow_redirects=False)
    assert response.status_code == 307
    assert response.headers["location"] == "/"
    assert client.get("/health").json()["status"] == "healthy"


def test_api_paths_are_not_redirected(client):
    response = client.get("/api/v1/auth/login", follow_redirects=False)
    assert response.status_code == 405

    response = client.get("/api/v1/no-such-endpoint", follow_redirects=False)
    assert response.status_code == 404
    assert response.json()["detail"] == "Not Found"


def test_admin_redirect_followed_lands_on_dashboard(client):
    user = signup_and_login(client, "follow@example.com")
    response = client.get("/api/v1/admin/stats", headers=user["headers"])
    assert response.status_code == 200
    assert "recent_donations" in response.json()
