"""
Identity Directory: the user store.

Email uniqueness is left to the `users.email` unique constraint. Inserts and
email changes run inside a SAVEPOINT so a concurrent duplicate surfaces as a
ValidationError instead of a 500.
"""
from __future__ import annotations

import re
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError

from app.backoffice.audit import record_event
from app.backoffice.errors import NotFoundError, SelfDeactivationError, ValidationError
from app.backoffice.models import User
from app.backoffice.passwords import hash_password, verify_password
from app.backoffice.permissions import Role

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


MIN_PASSWORD_LENGTH = 8
_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def find_by_id(s: "Session", user_id: int) -> User | None:
    return s.get(User, user_id)


def find_by_email(s: "Session", email: str) -> User | None:
    return s.execute(select(User).where(User.email == email)).scalar_one_or_none()


def is_usable(user: User | None) -> bool:
    return user is not None and user.deactivated_at is None


def authenticate(s: "Session", email: str, password: str) -> User | None:
    """
    None for an unknown email, a deactivated account or a wrong password.
    Callers must not tell these apart in their response.
    """
    user = find_by_email(s, email)
    if not is_usable(user):
        return None
    if not verify_password(user.password_hash, password):
        return None
    return user


def list_users(s: "Session", *, include_deactivated: bool = False, search: str = "") -> list[User]:
    q = select(User)
    if not include_deactivated:
        q = q.where(User.deactivated_at.is_(None))
    if search:
        like = f"%{search}%"
        q = q.where(or_(User.email.ilike(like), User.full_name.ilike(like)))
    return list(s.execute(q.order_by(User.created_at.asc(), User.id.asc())).scalars())


def _clean_email(raw) -> str:
    return raw.strip() if isinstance(raw, str) else ""


def _parse_role(raw) -> Role:
    role = Role.parse(raw)
    if role is None:
        raise ValidationError("Invalid role")
    return role


def _check_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


def _flush_unique_email(s: "Session", user: User) -> None:
    try:
        with s.begin_nested():
            s.add(user)
            s.flush()
    except IntegrityError:
        raise ValidationError("Email already exists") from None


def create_user(s: "Session", payload: dict, actor: User | None) -> User:
    email = _clean_email(payload.get("email"))
    password = payload.get("password") or ""
    full_name = (payload.get("fullName") or "").strip()
    if not email or not password or not full_name or not payload.get("role"):
        raise ValidationError("All fields are required")
    if not _EMAIL_RE.match(email):
        raise ValidationError("Invalid email format")
    role = _parse_role(payload.get("role"))
    _check_password(password)

    user = User(
        email=email,
        full_name=full_name,
        role=role,
        has_finance_access=bool(payload.get("hasFinanceAccess", False)),
        password_hash=hash_password(password),
        created_at=datetime.utcnow(),
    )
    _flush_unique_email(s, user)

    record_event(
        s,
        actor=actor,
        action="user.create",
        entity_type="User",
        entity_id=str(user.id),
        metadata={"email": user.email, "role": user.role.value, "has_finance_access": user.has_finance_access},
    )
    return user


def update_user(s: "Session", user_id: int, payload: dict, actor: User) -> User:
    user = find_by_id(s, user_id)
    if not user:
        raise NotFoundError("User not found")

    before = {"email": user.email, "role": user.role.value, "has_finance_access": user.has_finance_access}

    if "email" in payload and payload["email"] is not None:
        email = _clean_email(payload["email"])
        if not email or not _EMAIL_RE.match(email):
            raise ValidationError("Invalid email format")
        user.email = email
    if payload.get("fullName"):
        user.full_name = str(payload["fullName"]).strip()
    if payload.get("role"):
        user.role = _parse_role(payload["role"])
    if "hasFinanceAccess" in payload:
        user.has_finance_access = bool(payload["hasFinanceAccess"])
    password = payload.get("password") or ""
    if password:
        _check_password(password)
        user.password_hash = hash_password(password)

    _flush_unique_email(s, user)

    after = {"email": user.email, "role": user.role.value, "has_finance_access": user.has_finance_access}
    record_event(
        s,
        actor=actor,
        action="user.update",
        entity_type="User",
        entity_id=str(user.id),
        metadata={"before": before, "after": after, "password_changed": bool(password)},
    )
    return user


def deactivate_user(s: "Session", target_id: int, actor: User) -> User:
    """Irreversible. Stamps deactivated_at/by; outstanding sessions stop resolving."""
    if target_id == actor.id:
        raise SelfDeactivationError()
    user = find_by_id(s, target_id)
    if not user:
        raise NotFoundError("User not found")
    if user.deactivated_at is not None:
        raise ValidationError("User is already deactivated")

    user.deactivated_at = datetime.utcnow()
    user.deactivated_by_user_id = actor.id
    record_event(
        s,
        actor=actor,
        action="user.deactivate",
        entity_type="User",
        entity_id=str(user.id),
        metadata={"email": user.email},
    )
    return user
