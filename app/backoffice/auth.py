from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timedelta

from flask import Blueprint, current_app, g, jsonify, request

from app.backoffice.audit import record_event
from app.backoffice.db import db_session
from app.backoffice.errors import ValidationError
from app.backoffice.identity import authenticate, find_by_id, is_usable
from app.backoffice.rbac import current_user
from app.backoffice.records import json_body
from app.backoffice.sessions import session_manager

bp = Blueprint("auth", __name__)
_login_attempts: dict[str, list[datetime]] = defaultdict(list)
_LOGIN_RATE_LIMIT = 5
_LOGIN_RATE_WINDOW = 300  # seconds

INVALID_CREDENTIALS = "Invalid email or password"


def _check_rate_limit(ip: str) -> bool:
    now = datetime.utcnow()
    cutoff = now - timedelta(seconds=_LOGIN_RATE_WINDOW)
    recent = [t for t in _login_attempts.get(ip, ()) if t > cutoff]
    if not recent:
        _login_attempts.pop(ip, None)
        return False
    _login_attempts[ip] = recent
    return len(recent) >= _LOGIN_RATE_LIMIT


def _record_attempt(ip: str) -> None:
    _login_attempts[ip].append(datetime.utcnow())


def load_current_user() -> None:
    """
    Resolves g.current_user from the signed session cookie, re-checking on every
    request that the user still exists and is not deactivated.
    Also assigns a simple per-request request_id (for audit/log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    g.current_user = None

    sessions = session_manager()
    user_id = sessions.resolve(request.cookies.get(sessions.cookie_name))
    if user_id is None:
        return

    user = find_by_id(db_session(), user_id)
    if not is_usable(user):
        current_app.logger.info("Session subject %s missing or deactivated (request_id=%s)", user_id, g.request_id)
        return
    g.current_user = user


@bp.post("/login")
def login():
    body = json_body()
    email = body.get("email")
    password = body.get("password")
    if not isinstance(email, str) or not isinstance(password, str) or not email.strip() or not password:
        raise ValidationError("Email and password are required")
    email = email.strip()
    ip = request.remote_addr or "unknown"

    if _check_rate_limit(ip):
        return jsonify({"error": "Too many login attempts. Please wait 5 minutes."}), 429

    _record_attempt(ip)

    s = db_session()
    user = authenticate(s, email, password)
    if user is None:
        record_event(
            s,
            actor=None,
            action="auth.login_failed",
            entity_type="User",
            reason="Invalid credentials",
            metadata={"email": email[:320]},
        )
        s.commit()
        return jsonify({"error": INVALID_CREDENTIALS}), 401

    _login_attempts.pop(ip, None)
    record_event(s, actor=user, action="auth.login", entity_type="User", entity_id=str(user.id))
    s.commit()

    sessions = session_manager()
    resp = jsonify({"success": True, "user": user.to_public_dict()})
    return sessions.attach(resp, sessions.issue(user.id))


@bp.get("/me")
def me():
    user = current_user()
    return jsonify({"user": user.to_public_dict(include_finance=True)})


@bp.post("/logout")
def logout():
    user = getattr(g, "current_user", None)
    if user:
        s = db_session()
        record_event(s, actor=user, action="auth.logout", entity_type="User", entity_id=str(user.id))
        s.commit()
    resp = jsonify({"success": True})
    return session_manager().revoke(resp)
