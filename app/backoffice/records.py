"""
Route wiring shared by every record type.

A record type declares a `RecordResource`: its lifecycle manager, how to parse
and serialize its business payload, and which check guards each operation.
`build_record_blueprint` turns that into the JSON endpoints:

    GET    /api/<name>            list (?archived=true, ?q=)
    POST   /api/<name>            create
    PUT    /api/<name>/<id>       update
    DELETE /api/<name>/<id>       archive, or hard delete where the type uses it
    PATCH  /api/<name>/<id>       unarchive (types whose policy supports it)
"""
from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from flask import Blueprint, current_app, jsonify, request

from app.backoffice.db import db_session
from app.backoffice.errors import ValidationError
from app.backoffice.lifecycle import RecordLifecycle
from app.backoffice.models import User
from app.backoffice.permissions import FinanceOperation
from app.backoffice.rbac import current_user, ensure_finance_access, ensure_permission

Check = Callable[[User], None]


def needs(permission_key: str) -> Check:
    def check(user: User) -> None:
        ensure_permission(user, permission_key)

    return check


def needs_finance(operation: FinanceOperation) -> Check:
    def check(user: User) -> None:
        ensure_finance_access(user, operation)

    return check


def anyone(user: User) -> None:
    return None


@dataclass(frozen=True)
class RecordAccess:
    create: Check
    edit: Check
    archive: Check
    view: Check = anyone
    view_archived: Check = anyone
    unarchive: Check | None = None
    hard_delete: Check | None = None


@dataclass(frozen=True)
class RecordResource:
    name: str  # url segment, e.g. "cancelled-orders"
    lifecycle: RecordLifecycle
    access: RecordAccess
    parse_payload: Callable[..., dict[str, Any]]  # (body, user, existing=None)
    serialize: Callable[[Any], dict]
    collection_key: str = "records"
    item_key: str = "record"
    search_columns: Callable[[], Sequence[Any]] = lambda: ()
    filters: Callable[[Any], list[Any]] | None = None  # query args -> extra SQL conditions
    delete_is_hard: bool = False
    label: str = ""  # human label for messages; defaults to the entity type


# ---------- payload helpers ----------
def json_body() -> dict:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def text(body: dict, key: str) -> str | None:
    value = body.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def require_fields(body: dict, keys: Sequence[str], message: str) -> None:
    for key in keys:
        value = body.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(message)


def parse_int(value: Any, label: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {label}") from None


def parse_decimal(value: Any, label: str) -> Decimal | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"Invalid {label}") from None
    if not parsed.is_finite():
        raise ValidationError(f"Invalid {label}")
    return parsed


def parse_datetime(value: Any, label: str = "date") -> datetime:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Invalid {label} format")
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f"Invalid {label} format") from None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_date(value: str | None) -> date | None:
    """Parse YYYY-MM-DD date string; None for blank or malformed input."""
    value = (value or "").strip()
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def iso(value: datetime | date | None) -> str | None:
    return value.isoformat() if value is not None else None


def money(value: Decimal | None) -> str | None:
    return str(value) if value is not None else None


def archived_flag() -> bool:
    return (request.args.get("archived") or "").strip().lower() == "true"


# ---------- blueprint ----------
def build_record_blueprint(resource: RecordResource, *, blueprint_name: str | None = None) -> Blueprint:
    bp = Blueprint(blueprint_name or resource.name.replace("-", "_"), __name__)
    lifecycle = resource.lifecycle
    access = resource.access
    label = resource.label or lifecycle.entity_type

    @bp.get(f"/{resource.name}")
    def list_records():
        user = current_user()
        archived = archived_flag()
        (access.view_archived if archived else access.view)(user)

        s = db_session()
        records = lifecycle.listing(
            s,
            archived=archived,
            search=(request.args.get("q") or request.args.get("search") or "").strip(),
            search_columns=resource.search_columns(),
            conditions=resource.filters(request.args) if resource.filters else (),
        )
        return jsonify({resource.collection_key: [resource.serialize(r) for r in records]})

    @bp.post(f"/{resource.name}")
    def create_record():
        user = current_user()
        access.create(user)
        s = db_session()
        fields = resource.parse_payload(json_body(), user)
        record = lifecycle.create(s, fields, user)
        s.commit()
        current_app.logger.info("%s %s created by user %s", label, record.id, user.id)
        return jsonify({resource.item_key: resource.serialize(record)}), 201

    @bp.put(f"/{resource.name}/<int:record_id>")
    def update_record(record_id: int):
        user = current_user()
        access.edit(user)
        s = db_session()
        existing = lifecycle.get(s, record_id)
        fields = resource.parse_payload(json_body(), user, existing)
        record = lifecycle.update(s, record_id, fields, user)
        s.commit()
        return jsonify({resource.item_key: resource.serialize(record)})

    @bp.delete(f"/{resource.name}/<int:record_id>")
    def delete_record(record_id: int):
        user = current_user()
        s = db_session()
        if resource.delete_is_hard:
            if access.hard_delete is None:
                raise ValidationError(f"{label} records cannot be permanently deleted")
            access.hard_delete(user)
            lifecycle.hard_delete(s, record_id, user)
            s.commit()
            current_app.logger.warning("%s %s permanently deleted by user %s", label, record_id, user.id)
            return jsonify({"message": f"{label} permanently deleted"})

        access.archive(user)
        lifecycle.archive(s, record_id, user)
        s.commit()
        return jsonify({"message": f"{label} archived successfully"})

    if lifecycle.policy.supports_unarchive and access.unarchive is not None:

        @bp.patch(f"/{resource.name}/<int:record_id>")
        def unarchive_record(record_id: int):
            user = current_user()
            access.unarchive(user)
            body = json_body()
            note = body.get("unarchiveNote")
            if not isinstance(note, str) or not note.strip():
                raise ValidationError("Unarchive note is required")
            s = db_session()
            record = lifecycle.unarchive(
                s,
                record_id,
                user,
                note,
                min_note_length=int(current_app.config.get("UNARCHIVE_NOTE_MIN_LENGTH", 10)),
            )
            s.commit()
            return jsonify({"message": f"{label} unarchived successfully", resource.item_key: resource.serialize(record)})

    return bp
