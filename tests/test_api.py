"""
HTTP surface: authentication, lockout, module gating and the error envelope.
"""
from datetime import datetime, timedelta, timezone

from fleet_venue.models import UserSession, VehicleAssignment

API = "/api/v1"


def _login(client, email, password="secret123"):
    return client.post(f"{API}/auth/login", json={"email": email, "password": password})


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


# ─── Authentication ───────────────────────────────────────────────────────────
def test_missing_token_is_401(client):
    res = client.get(f"{API}/vehicles")
    assert res.status_code == 401
    body = res.json()
    assert body["success"] is False
    assert body["error"]["code"] == "UNAUTHORIZED"


def test_malformed_token_is_401(client):
    res = client.get(f"{API}/vehicles", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401


def test_login_me_logout(client, admin_user):
    res = _login(client, "ADMIN@example.com")
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["tokenType"] == "Bearer"
    headers = {"Authorization": f"Bearer {data['accessToken']}"}

    me = client.get(f"{API}/auth/me", headers=headers).json()["data"]
    assert me["email"] == "admin@example.com"
    assert me["role"] == "ADMIN"

    assert client.post(f"{API}/auth/logout", headers=headers).status_code == 200
    res = client.get(f"{API}/auth/me", headers=headers)
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "SESSION_EXPIRED"


def test_second_login_refused_while_session_live(client, admin_user):
    assert _login(client, "admin@example.com").status_code == 200
    res = _login(client, "admin@example.com")
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "SESSION_ACTIVE"


def test_expired_session_rejected(client, db, admin_user, admin_headers):
    session = db.query(UserSession).filter(UserSession.userId == admin_user.id).one()
    session.expiresAt = datetime.now(timezone.utc) - timedelta(seconds=1)
    db.commit()

    res = client.get(f"{API}/auth/me", headers=admin_headers)
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "SESSION_EXPIRED"


def test_lockout_after_failed_attempts(client, db, admin_user, fleet_staff):
    assert _login(client, "fleet@example.com", "wrong").status_code == 401
    assert _login(client, "fleet@example.com", "wrong").status_code == 401
    res = _login(client, "fleet@example.com", "wrong")
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "ACCOUNT_LOCKED"

    res = _login(client, "fleet@example.com")
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "ACCOUNT_LOCKED"

    login = _login(client, "admin@example.com").json()["data"]
    headers = {"Authorization": f"Bearer {login['accessToken']}"}
    assert client.patch(f"{API}/users/{fleet_staff.id}/unlock", headers=headers).status_code == 200

    assert _login(client, "fleet@example.com").status_code == 200


def test_unknown_email_is_401(client, admin_user):
    assert _login(client, "nobody@example.com").status_code == 401


# ─── Authorization ────────────────────────────────────────────────────────────
def test_module_gating(client, fleet_headers):
    assert client.get(f"{API}/vehicles", headers=fleet_headers).status_code == 200

    res = client.get(f"{API}/rooms", headers=fleet_headers)
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "MODULE_REQUIRED"
    assert res.json()["error"]["details"] == ["ROOMS"]


def test_admin_bypasses_module_grants(client, admin_headers):
    assert client.get(f"{API}/rooms", headers=admin_headers).status_code == 200
    assert client.get(f"{API}/reservations", headers=admin_headers).status_code == 200


def test_user_administration_is_admin_only(client, fleet_headers):
    res = client.get(f"{API}/users", headers=fleet_headers)
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "FORBIDDEN"


def test_catalog_write_needs_owning_module(client, fleet_headers):
    res = client.post(f"{API}/catalogs/services", json={"name": "Valet"}, headers=fleet_headers)
    assert res.status_code == 403

    res = client.post(f"{API}/catalogs/vehicle-types", json={"name": "Pickup"}, headers=fleet_headers)
    assert res.status_code == 201
    assert client.get(f"{API}/catalogs/vehicle-types", headers=fleet_headers).json()["data"][0]["name"] == "Pickup"


# ─── Error envelope ───────────────────────────────────────────────────────────
def test_request_validation_is_400(client, fleet_headers):
    res = client.post(f"{API}/assignments", json={"vehicleId": "x"}, headers=fleet_headers)
    assert res.status_code == 400
    body = res.json()
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert any(d["field"] == "vehicleId" for d in body["error"]["details"])


def test_expired_license_over_http(client, db, fleet_headers, vehicle, driver):
    for lic in driver.licenses:
        lic.expiryDate = lic.issueDate
    db.commit()

    res = client.post(f"{API}/assignments", headers=fleet_headers, json={
        "vehicleId": vehicle.id,
        "driverId": driver.id,
        "startDate": "2030-05-20T08:00:00Z",
        "endDate": "2030-05-20T12:00:00Z",
        "startOdometer": 1000,
    })

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_LICENSE"
    assert db.query(VehicleAssignment).count() == 0


def test_assignment_lifecycle_over_http(client, fleet_headers, vehicle, driver):
    res = client.post(f"{API}/assignments", headers=fleet_headers, json={
        "vehicleId": vehicle.id,
        "driverId": driver.id,
        "startDate": "2030-05-20T08:00:00Z",
        "endDate": "2030-05-20T12:00:00Z",
        "startOdometer": 1000,
        "requiresAuthorization": True,
    })
    assert res.status_code == 201
    assignment_id = res.json()["data"]["id"]

    res = client.post(f"{API}/assignments", headers=fleet_headers, json={
        "vehicleId": vehicle.id,
        "driverId": driver.id,
        "startDate": "2030-05-20T10:00:00Z",
        "startOdometer": 1000,
    })
    assert res.status_code == 409
    assert res.json()["error"]["details"][0]["id"] == assignment_id

    assert client.put(f"{API}/assignments/{assignment_id}/authorize", headers=fleet_headers).status_code == 200
    res = client.put(f"{API}/assignments/{assignment_id}/finalize", headers=fleet_headers,
                     json={"endOdometer": 1050})
    assert res.status_code == 200
    assert res.json()["data"]["distance"] == 50

    res = client.get(f"{API}/assignments/history", headers=fleet_headers, params={"status": "finalized"})
    assert res.json()["meta"]["total"] == 1
    res = client.get(f"{API}/assignments/history", headers=fleet_headers, params={"status": "DONE"})
    assert res.status_code == 400

    res = client.delete(f"{API}/assignments/{assignment_id}", headers=fleet_headers, params={"reason": "late"})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_TRANSITION"


def test_vehicle_status_pinned_by_active_assignment(client, fleet_headers, vehicle, driver):
    res = client.post(f"{API}/assignments", headers=fleet_headers, json={
        "vehicleId": vehicle.id,
        "driverId": driver.id,
        "startDate": "2030-05-20T08:00:00Z",
        "startOdometer": 1000,
    })
    assert res.status_code == 201

    res = client.patch(f"{API}/vehicles/{vehicle.id}/status", headers=fleet_headers, json={"status": "INACTIVE"})
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "RESOURCE_IN_USE"
    res = client.get(f"{API}/vehicles/{vehicle.id}", headers=fleet_headers)
    assert res.json()["data"]["resource"]["status"] == "IN_USE"
