"""Tests for login, session cookies and the per-request user check."""

from datetime import datetime, timedelta

from sqlalchemy import select

from app.backoffice import auth
from app.backoffice.db import session_scope
from app.backoffice.models import AuditEvent
from conftest import ADMIN, PASSWORD, PLAIN, RETIRED


def _post_login(client, email, password):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def _session_cookie_header(r):
    return next(h for h in r.headers.getlist("Set-Cookie") if h.startswith("session="))


def test_login_sets_hardened_cookie(client):
    r = _post_login(client, ADMIN, PASSWORD)
    assert r.status_code == 200
    header = _session_cookie_header(r)
    assert "HttpOnly" in header
    assert "SameSite=Lax" in header
    assert "Path=/" in header
    assert "Max-Age=604800" in header


def test_login_failures_are_indistinguishable(client):
    wrong_password = _post_login(client, ADMIN, "not-the-password")
    unknown_email = _post_login(client, "nobody@example.com", PASSWORD)
    deactivated = _post_login(client, RETIRED, PASSWORD)

    for r in (wrong_password, unknown_email, deactivated):
        assert r.status_code == 401
        assert r.json == {"error": "Invalid email or password"}
        assert not any(h.startswith("session=") for h in r.headers.getlist("Set-Cookie"))


def test_email_match_is_exact(client):
    r = _post_login(client, ADMIN.upper(), PASSWORD)
    assert r.status_code == 401


def test_login_requires_both_fields(client):
    r = client.post("/api/auth/login", json={"email": ADMIN})
    assert r.status_code == 400
    assert r.json["error"] == "Email and password are required"

    r = client.post("/api/auth/login", json={})
    assert r.status_code == 400


def test_login_rate_limited_per_ip(client):
    for _ in range(5):
        r = _post_login(client, PLAIN, "wrong-password")
        assert r.status_code == 401
    r = _post_login(client, PLAIN, PASSWORD)
    assert r.status_code == 429


def test_forged_cookie_is_unauthenticated(client):
    client.set_cookie("session", "forged.token.value")
    r = client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.json == {"error": "Unauthorized"}


def test_deactivation_ends_session_on_next_request(client_as, ids):
    admin = client_as(ADMIN)
    victim = client_as(PLAIN)

    assert victim.get("/api/auth/me").status_code == 200

    r = admin.delete(f"/api/users/{ids['user']}")
    assert r.status_code == 200

    r = victim.get("/api/auth/me")
    assert r.status_code == 401
    r = victim.get("/api/inactive-coupons")
    assert r.status_code == 401


def test_login_rejects_non_object_body(client):
    r = client.post("/api/auth/login", json=["a"])
    assert r.status_code == 400
    assert r.json["error"] == "Request body must be a JSON object"


def test_failed_login_with_very_long_email(client, app):
    email = "x" * 300 + "@example.com"
    r = _post_login(client, email, PASSWORD)
    assert r.status_code == 401
    assert r.json == {"error": "Invalid email or password"}

    with session_scope(app) as s:
        event = s.execute(select(AuditEvent).where(AuditEvent.action == "auth.login_failed")).scalar_one()
        assert event.entity_id is None
        assert email in event.metadata_json


def test_rate_limit_forgets_quiet_addresses(client):
    stale = datetime.utcnow() - timedelta(seconds=600)
    auth._login_attempts["10.0.0.9"] = [stale, stale]
    assert auth._check_rate_limit("10.0.0.9") is False
    assert "10.0.0.9" not in auth._login_attempts

    _post_login(client, PLAIN, "wrong-password")
    assert len(auth._login_attempts["127.0.0.1"]) == 1
    _post_login(client, PLAIN, PASSWORD)
    assert "127.0.0.1" not in auth._login_attempts
