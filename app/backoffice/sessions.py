"""
Session Manager.

A session token is `{"uid": <user id>, "n": <nonce>}` serialized and HMAC-signed
with the app SECRET_KEY by itsdangerous, which also embeds the signing time.
Any edit to the payload or timestamp breaks the signature. Tokens are not
tracked server-side: expiry is time-based and the caller re-checks that the
user is still active on every request.
"""
from __future__ import annotations

import logging
import secrets
from datetime import timedelta

from flask import Flask, Response
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "session"
_SALT = "backoffice.session"


class SessionManager:
    def __init__(
        self,
        secret_key: str,
        *,
        max_age: timedelta = timedelta(days=7),
        secure: bool = False,
        samesite: str = "Lax",
        cookie_name: str = SESSION_COOKIE_NAME,
    ):
        self._serializer = URLSafeTimedSerializer(secret_key, salt=_SALT)
        self.max_age = max_age
        self.secure = secure
        self.samesite = samesite
        self.cookie_name = cookie_name

    @classmethod
    def from_app(cls, app: Flask) -> "SessionManager":
        return cls(
            app.config["SECRET_KEY"],
            max_age=timedelta(days=int(app.config.get("SESSION_MAX_AGE_DAYS", 7))),
            secure=bool(app.config.get("SESSION_COOKIE_SECURE")),
            samesite=app.config.get("SESSION_COOKIE_SAMESITE") or "Lax",
        )

    @property
    def max_age_seconds(self) -> int:
        return int(self.max_age.total_seconds())

    def issue(self, user_id: int) -> str:
        return self._serializer.dumps({"uid": int(user_id), "n": secrets.token_urlsafe(12)})

    def resolve(self, token: str | None) -> int | None:
        """User id for a structurally valid, correctly signed, unexpired token; else None."""
        if not token:
            return None
        try:
            payload = self._serializer.loads(token, max_age=self.max_age_seconds)
        except SignatureExpired:
            logger.info("Session token expired")
            return None
        except BadSignature:
            logger.warning("Session token rejected: bad signature")
            return None
        uid = payload.get("uid") if isinstance(payload, dict) else None
        if not isinstance(uid, int) or isinstance(uid, bool):
            return None
        return uid

    def attach(self, response: Response, token: str) -> Response:
        response.set_cookie(
            self.cookie_name,
            token,
            max_age=self.max_age_seconds,
            path="/",
            secure=self.secure,
            httponly=True,
            samesite=self.samesite,
        )
        return response

    def revoke(self, response: Response) -> Response:
        # Best-effort: the token itself stays valid until it expires.
        response.delete_cookie(
            self.cookie_name,
            path="/",
            secure=self.secure,
            httponly=True,
            samesite=self.samesite,
        )
        return response


def session_manager() -> SessionManager:
    from flask import current_app

    return current_app.extensions["session_manager"]
