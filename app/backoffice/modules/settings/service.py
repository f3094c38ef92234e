from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.backoffice.audit import record_event
from app.backoffice.errors import NotFoundError, ValidationError
from app.backoffice.modules.settings.models import CancellationReason, Governorate, PaymentMethod, System

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.backoffice.models import LookupMixin, User


# url segment -> (model, human label)
LOOKUP_KINDS: dict[str, tuple[type, str]] = {
    "systems": (System, "System"),
    "cancellation-reasons": (CancellationReason, "Cancellation reason"),
    "governorates": (Governorate, "Governorate"),
    "payment-methods": (PaymentMethod, "Payment method"),
}


def lookup_kind(kind: str) -> tuple[type, str]:
    try:
        return LOOKUP_KINDS[kind]
    except KeyError:
        raise NotFoundError("Unknown settings list") from None


def list_items(s: "Session", model: type, *, include_deactivated: bool = False) -> list["LookupMixin"]:
    q = select(model)
    if not include_deactivated:
        q = q.where(model.deactivated_at.is_(None))
    return list(s.execute(q.order_by(model.name.asc())).scalars())


def _get(s: "Session", model: type, item_id: int, label: str) -> "LookupMixin":
    item = s.get(model, item_id)
    if item is None:
        raise NotFoundError(f"{label} not found")
    return item


def _clean_name(name, label: str) -> str:
    name = name.strip() if isinstance(name, str) else ""
    if not name:
        raise ValidationError(f"{label} name is required")
    return name


def _flush_unique(s: "Session", item, label: str) -> None:
    try:
        with s.begin_nested():
            s.add(item)
            s.flush()
    except IntegrityError:
        raise ValidationError(f"{label} already exists") from None


def create_item(s: "Session", kind: str, name, actor: "User") -> "LookupMixin":
    model, label = lookup_kind(kind)
    item = model(name=_clean_name(name, label), created_by_user_id=actor.id, created_at=datetime.utcnow())
    _flush_unique(s, item, label)
    record_event(
        s,
        actor=actor,
        action="setting.create",
        entity_type=model.__name__,
        entity_id=str(item.id),
        metadata={"name": item.name},
    )
    return item


def rename_item(s: "Session", kind: str, item_id: int, name, actor: "User") -> "LookupMixin":
    model, label = lookup_kind(kind)
    item = _get(s, model, item_id, label)
    old_name = item.name
    item.name = _clean_name(name, label)
    _flush_unique(s, item, label)
    record_event(
        s,
        actor=actor,
        action="setting.edit",
        entity_type=model.__name__,
        entity_id=str(item.id),
        metadata={"old": old_name, "new": item.name},
    )
    return item


def deactivate_item(s: "Session", kind: str, item_id: int, actor: "User") -> "LookupMixin":
    model, label = lookup_kind(kind)
    item = _get(s, model, item_id, label)
    if item.deactivated_at is not None:
        raise ValidationError(f"{label} is already deactivated")
    item.deactivated_at = datetime.utcnow()
    item.deactivated_by_user_id = actor.id
    record_event(
        s,
        actor=actor,
        action="setting.deactivate",
        entity_type=model.__name__,
        entity_id=str(item.id),
        metadata={"name": item.name},
    )
    return item


def ensure_active_reference(s: "Session", model: type, item_id: int, label: str, *, current: int | None = None) -> int:
    """
    Validate a record's reference to a lookup item. Deactivated items cannot be
    newly referenced; a record may keep the reference it already has.
    """
    if current is not None and item_id == current:
        return item_id
    item = s.get(model, item_id)
    if item is None or item.deactivated_at is not None:
        raise ValidationError(f"Invalid {label}")
    return item.id
