from datetime import datetime

import pytest

from app.backoffice import auth, create_app
from app.backoffice.db import session_scope
from app.backoffice.models import Base, User
from app.backoffice.modules.settings.models import CancellationReason, Governorate, PaymentMethod, System
from app.backoffice.passwords import hash_password
from app.backoffice.permissions import Role

PASSWORD = "correct-horse-9"

ADMIN = "admin@example.com"
MODERATOR = "moderator@example.com"
PLAIN = "user@example.com"
FINANCE = "finance@example.com"
RETIRED = "retired@example.com"


def _user(email, full_name, role, *, finance=False):
    return User(
        email=email,
        full_name=full_name,
        role=role,
        has_finance_access=finance,
        password_hash=hash_password(PASSWORD),
    )


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.delenv("UNARCHIVE_NOTE_MIN_LENGTH", raising=False)
    monkeypatch.delenv("SESSION_MAX_AGE_DAYS", raising=False)

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    auth._login_attempts.clear()
    yield app
    auth._login_attempts.clear()


@pytest.fixture()
def ids(app):
    """Seed one user per role (plus a finance user and a deactivated one) and one item per lookup list."""
    with session_scope(app) as s:
        admin = _user(ADMIN, "Admin", Role.ADMIN)
        users = {
            "admin": admin,
            "moderator": _user(MODERATOR, "Moderator", Role.MODERATOR),
            "user": _user(PLAIN, "Plain User", Role.USER),
            "finance": _user(FINANCE, "Finance User", Role.USER, finance=True),
            "retired": _user(RETIRED, "Retired User", Role.USER, finance=True),
        }
        s.add_all(users.values())
        s.flush()
        users["retired"].deactivated_at = datetime.utcnow()
        users["retired"].deactivated_by_user_id = admin.id

        lookups = {
            "system": System(name="Magento", created_by_user_id=admin.id),
            "reason": CancellationReason(name="Customer request", created_by_user_id=admin.id),
            "governorate": Governorate(name="Baghdad", created_by_user_id=admin.id),
            "payment_method": PaymentMethod(name="Zain Cash", created_by_user_id=admin.id),
        }
        s.add_all(lookups.values())
        s.flush()

        result = {key: u.id for key, u in users.items()}
        result.update({key: item.id for key, item in lookups.items()})
    return result


@pytest.fixture()
def client(app, ids):
    return app.test_client()


def _login(client, email, password=PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


@pytest.fixture()
def login(client):
    """Log the shared test client in as `email`."""

    def _do(email, password=PASSWORD):
        r = _login(client, email, password)
        assert r.status_code == 200, r.json
        return r

    return _do


@pytest.fixture()
def client_as(app, ids):
    """Fresh, logged-in test client per call; for tests that need several users at once."""

    def _make(email):
        c = app.test_client()
        r = _login(c, email)
        assert r.status_code == 200, r.json
        return c

    return _make
