from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from wanderer.app import app

pytestmark = pytest.mark.usefixtures("fresh_state")

client = TestClient(app)


def _login_user(c):
    return c.post("/auth/login", json={"email": "traveler@wanderer.ph", "password": "traveler123"})


def _login_admin(c):
    return c.post("/auth/login", json={"email": "admin@wanderer.ph", "password": "admin123"})


# ── Login / Logout ───────────────────────────────────────────────────────


def test_login_success_user():
    resp = _login_user(client)
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["user"]["email"] == "traveler@wanderer.ph"
    assert body["user"]["full_name"] == "Juan Dela Cruz"
    assert body["user"]["role"] == "user"
    assert body["user"]["onboarding_complete"] is False


def test_login_email_is_case_insensitive():
    resp = client.post("/auth/login", json={"email": "Admin@Wanderer.PH", "password": "admin123"})
    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == "admin"


def test_login_wrong_password():
    resp = client.post("/auth/login", json={"email": "traveler@wanderer.ph", "password": "wrong"})
    assert resp.status_code == 401


def test_login_unknown_user():
    resp = client.post("/auth/login", json={"email": "nobody@wanderer.ph", "password": "x"})
    assert resp.status_code == 401


def test_auth_me_when_logged_in():
    _login_user(client)
    resp = client.get("/auth/me")
    assert resp.status_code == 200
    assert resp.json()["email"] == "traveler@wanderer.ph"


def test_auth_me_not_logged_in():
    c = TestClient(app)  # fresh client, no session
    assert c.get("/auth/me").status_code == 401


def test_logout():
    _login_user(client)
    resp = client.post("/auth/logout")
    assert resp.json()["status"] == "logged_out"
    assert client.get("/auth/me").status_code == 401


# ── Route protection ─────────────────────────────────────────────────────


def test_protected_routes_require_login():
    c = TestClient(app)
    assert c.get("/recommendations/feed").status_code == 401
    assert c.get("/itineraries").status_code == 401
    assert c.post("/favorites/anything").status_code == 401
    assert c.get("/profile").status_code == 401


def test_admin_routes_reject_plain_users():
    c = TestClient(app)
    _login_user(c)
    assert c.get("/admin/stats").status_code == 403
    assert c.get("/admin/users").status_code == 403


def test_public_routes_need_no_login():
    c = TestClient(app)
    assert c.get("/health").json() == {"status": "ok"}
    assert c.get("/spots").status_code == 200


# ── Profile ──────────────────────────────────────────────────────────────


def test_profile_update_names():
    c = TestClient(app)
    _login_user(c)
    resp = c.patch("/profile", json={"middle_initial": "P", "suffix": "Jr."})
    assert resp.status_code == 200
    assert resp.json()["full_name"] == "Juan P. Dela Cruz Jr."


def test_profile_rejects_long_middle_initial():
    c = TestClient(app)
    _login_user(c)
    assert c.patch("/profile", json={"middle_initial": "PR"}).status_code == 422


def test_password_change_mismatch():
    c = TestClient(app)
    _login_user(c)
    resp = c.post("/profile/password", json={
        "current_password": "traveler123",
        "new_password": "bicol2026",
        "confirm_password": "bicol2027",
    })
    assert resp.status_code == 422


def test_password_change_wrong_current():
    c = TestClient(app)
    _login_user(c)
    resp = c.post("/profile/password", json={
        "current_password": "nope",
        "new_password": "bicol2026",
        "confirm_password": "bicol2026",
    })
    assert resp.status_code == 400


def test_password_change_then_login():
    c = TestClient(app)
    _login_user(c)
    resp = c.post("/profile/password", json={
        "current_password": "traveler123",
        "new_password": "bicol2026",
        "confirm_password": "bicol2026",
    })
    assert resp.status_code == 200
    assert _login_user(TestClient(app)).status_code == 401
    fresh = TestClient(app)
    ok = fresh.post("/auth/login", json={"email": "traveler@wanderer.ph", "password": "bicol2026"})
    assert ok.status_code == 200


# ── Password length ──────────────────────────────────────────────────────


def test_login_with_overlong_password_is_rejected():
    resp = client.post("/auth/login", json={"email": "traveler@wanderer.ph", "password": "p" * 100})
    assert resp.status_code == 401


def test_password_change_overlong_new_password():
    c = TestClient(app)
    _login_user(c)
    resp = c.post("/profile/password", json={
        "current_password": "traveler123",
        "new_password": "p" * 100,
        "confirm_password": "p" * 100,
    })
    assert resp.status_code == 422


def test_password_change_overlong_current_password():
    c = TestClient(app)
    _login_user(c)
    resp = c.post("/profile/password", json={
        "current_password": "p" * 100,
        "new_password": "bicol2026",
        "confirm_password": "bicol2026",
    })
    assert resp.status_code == 400
