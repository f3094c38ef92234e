"""Unit tests for signed session tokens."""

import time
from datetime import timedelta

import pytest

from app.backoffice.sessions import SessionManager


@pytest.fixture()
def sessions():
    return SessionManager("test-secret", max_age=timedelta(days=7))


class TestSessionManager:
    def test_issue_and_resolve(self, sessions):
        token = sessions.issue(42)
        assert sessions.resolve(token) == 42

    def test_tokens_are_unique(self, sessions):
        assert sessions.issue(1) != sessions.issue(1)

    def test_missing_or_garbage_token(self, sessions):
        assert sessions.resolve(None) is None
        assert sessions.resolve("") is None
        assert sessions.resolve("not-a-token") is None
        assert sessions.resolve("a.b.c") is None

    def test_tampered_payload_rejected(self, sessions):
        mine = sessions.issue(1).split(".")
        theirs = sessions.issue(2).split(".")
        forged = ".".join([theirs[0], *mine[1:]])
        assert sessions.resolve(forged) is None

    def test_other_secret_rejected(self, sessions):
        other = SessionManager("another-secret")
        assert sessions.resolve(other.issue(1)) is None

    def test_expired_token_rejected(self, sessions, monkeypatch):
        token = sessions.issue(7)
        issued_at = time.time()
        monkeypatch.setattr(time, "time", lambda: issued_at + timedelta(days=8).total_seconds())
        assert sessions.resolve(token) is None

    def test_still_valid_before_expiry(self, sessions, monkeypatch):
        token = sessions.issue(7)
        issued_at = time.time()
        monkeypatch.setattr(time, "time", lambda: issued_at + timedelta(days=6).total_seconds())
        assert sessions.resolve(token) == 7

    def test_max_age_seconds(self, sessions):
        assert sessions.max_age_seconds == 7 * 24 * 3600
