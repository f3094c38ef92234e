"""
Record Lifecycle Manager.

One generic manager drives create / update / archive / unarchive / hard delete
for every model built on `ArchivableMixin`. What a record type may do is
declared in its `LifecyclePolicy`; the manager never authorizes, callers
consult the PermissionEngine first.

State machine:

    [none] --create--> [active] --archive--> [archived] --unarchive(note)--> [active]
    [active|archived] --hard_delete (policy permitting)--> [gone]
"""
from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError

from app.backoffice.audit import record_event
from app.backoffice.errors import NotFoundError, ValidationError
from app.backoffice.models import ArchivableMixin

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.backoffice.models import User


UNARCHIVE_NOTE_MIN_LENGTH = 10
UNARCHIVE_PREFIX = "[UNARCHIVED on "
_UNARCHIVE_LINE_RE = re.compile(r"^\[UNARCHIVED on [^\]]+\]: .*$", re.MULTILINE)

T = TypeVar("T", bound=ArchivableMixin)


@dataclass(frozen=True)
class LifecyclePolicy:
    supports_archive: bool = True
    supports_unarchive: bool = False
    supports_hard_delete: bool = False
    editable_while_archived: bool = False


def single_line(note: str) -> str:
    """Collapse all whitespace runs (newlines included) to single spaces."""
    return " ".join(note.split())


def format_unarchive_line(when: datetime, note: str) -> str:
    return f"{UNARCHIVE_PREFIX}{when.strftime('%Y-%m-%d %H:%M:%S')} UTC]: {single_line(note)}"


def append_note(existing: str | None, line: str) -> str:
    if existing:
        return f"{existing}\n\n{line}"
    return line


def preserve_unarchive_lines(old_notes: str | None, new_notes: str | None) -> str | None:
    """Re-append unarchive lines from `old_notes` that an edit dropped."""
    kept = _UNARCHIVE_LINE_RE.findall(old_notes or "")
    result = new_notes
    for line in kept:
        if line not in (result or "").splitlines():
            result = append_note(result, line)
    return result


class RecordLifecycle(Generic[T]):
    def __init__(
        self,
        model: type[T],
        *,
        entity_type: str,
        action_prefix: str,
        policy: LifecyclePolicy,
        duplicate_message: str = "Duplicate value",
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.model = model
        self.entity_type = entity_type
        self.action_prefix = action_prefix
        self.policy = policy
        self.duplicate_message = duplicate_message
        self._now = clock

    # ---------- reads ----------
    def get(self, s: "Session", record_id: int, *, for_update: bool = False) -> T:
        record = s.get(self.model, record_id, with_for_update=for_update or None)
        if record is None:
            raise NotFoundError(f"{self.entity_type} not found")
        return record

    def listing(
        self,
        s: "Session",
        *,
        archived: bool = False,
        search: str = "",
        search_columns: Iterable[Any] = (),
        conditions: Iterable[Any] = (),
    ) -> list[T]:
        q = select(self.model).where(self.model.is_archived == archived, *conditions)
        columns = list(search_columns)
        if search and columns:
            like = f"%{search}%"
            q = q.where(or_(*(c.ilike(like) for c in columns)))
        q = q.order_by(self.model.created_at.desc(), self.model.id.desc())
        return list(s.execute(q).scalars())

    def count_active(self, s: "Session") -> int:
        return s.execute(
            select(func.count()).select_from(self.model).where(self.model.is_archived.is_(False))
        ).scalar_one()

    # ---------- transitions ----------
    def _flush(self, s: "Session", record: T) -> None:
        try:
            with s.begin_nested():
                s.add(record)
                s.flush()
        except IntegrityError:
            raise ValidationError(self.duplicate_message) from None

    def _event(self, s: "Session", actor: "User", verb: str, record: T, **kwargs) -> None:
        record_event(
            s,
            actor=actor,
            action=f"{self.action_prefix}.{verb}",
            entity_type=self.entity_type,
            entity_id=str(record.id),
            **kwargs,
        )

    def create(self, s: "Session", fields: dict[str, Any], actor: "User") -> T:
        now = self._now()
        record = self.model(
            **fields,
            created_at=now,
            updated_at=now,
            created_by_user_id=actor.id,
            updated_by_user_id=actor.id,
            is_archived=False,
            archived_at=None,
            archived_by_user_id=None,
        )
        self._flush(s, record)
        self._event(s, actor, "create", record, metadata={"fields": sorted(fields)})
        return record

    def update(self, s: "Session", record_id: int, fields: dict[str, Any], actor: "User") -> T:
        record = self.get(s, record_id, for_update=True)
        if record.is_archived and not self.policy.editable_while_archived:
            raise ValidationError(f"Archived {self.entity_type} records cannot be edited")

        changes: dict[str, dict[str, Any]] = {}
        for name, value in fields.items():
            if name == "notes":
                value = preserve_unarchive_lines(record.notes, value)
            old = getattr(record, name)
            if old != value:
                changes[name] = {"old": old, "new": value}
                setattr(record, name, value)

        record.updated_at = self._now()
        record.updated_by_user_id = actor.id
        self._flush(s, record)
        self._event(s, actor, "edit", record, metadata={"changes": changes})
        return record

    def archive(self, s: "Session", record_id: int, actor: "User") -> T:
        if not self.policy.supports_archive:
            raise ValidationError(f"{self.entity_type} records cannot be archived")
        record = self.get(s, record_id, for_update=True)
        if record.is_archived:
            raise ValidationError(f"{self.entity_type} is already archived")

        record.is_archived = True
        record.archived_at = self._now()
        record.archived_by_user_id = actor.id
        s.flush()
        self._event(s, actor, "archive", record)
        return record

    def unarchive(
        self,
        s: "Session",
        record_id: int,
        actor: "User",
        note: str | None,
        *,
        min_note_length: int = UNARCHIVE_NOTE_MIN_LENGTH,
    ) -> T:
        if not self.policy.supports_unarchive:
            raise ValidationError(f"{self.entity_type} records cannot be unarchived")
        record = self.get(s, record_id, for_update=True)
        if not record.is_archived:
            raise ValidationError(f"{self.entity_type} is not archived")
        note = single_line(note or "")
        if len(note) < min_note_length:
            raise ValidationError(f"Unarchive note must be at least {min_note_length} characters")

        now = self._now()
        record.is_archived = False
        record.archived_at = None
        record.archived_by_user_id = None
        record.notes = append_note(record.notes, format_unarchive_line(now, note))
        record.updated_at = now
        record.updated_by_user_id = actor.id
        s.flush()
        self._event(s, actor, "unarchive", record, reason=note[:512])
        return record

    def hard_delete(self, s: "Session", record_id: int, actor: "User") -> None:
        """Irreversible physical removal; only where the policy allows it."""
        if not self.policy.supports_hard_delete:
            raise ValidationError(f"{self.entity_type} records cannot be permanently deleted")
        record = self.get(s, record_id, for_update=True)
        self._event(s, actor, "hard_delete", record, metadata={"was_archived": bool(record.is_archived)})
        s.delete(record)
        s.flush()

    def hard_delete_all(self, s: "Session", actor: "User") -> int:
        if not self.policy.supports_hard_delete:
            raise ValidationError(f"{self.entity_type} records cannot be permanently deleted")
        result = s.execute(delete(self.model))
        count = result.rowcount or 0
        record_event(
            s,
            actor=actor,
            action=f"{self.action_prefix}.bulk_hard_delete",
            entity_type=self.entity_type,
            metadata={"count": count},
        )
        return count
