from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column

from app.backoffice.permissions import Role


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    # Case-sensitive as stored; the unique constraint is the source of truth for duplicates.
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(
        Enum(Role, native_enum=False, length=16, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=Role.USER,
    )
    has_finance_access: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    deactivated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    deactivated_by_user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    @property
    def is_active(self) -> bool:
        return self.deactivated_at is None

    def to_public_dict(self, *, include_finance: bool = False) -> dict:
        data = {
            "id": self.id,
            "email": self.email,
            "fullName": self.full_name,
            "role": self.role.value,
        }
        if include_finance:
            data["hasFinanceAccess"] = bool(self.has_finance_access)
        return data


class AuditEvent(Base):
    """
    Append-only audit trail event.
    Keep this table intentionally generic; record tables refer to it by entity_type/entity_id.
    """

    __tablename__ = "audit_events"
    __table_args__ = (
        UniqueConstraint("request_id", "id", name="uq_audit_request_id_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    request_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    actor_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    actor_user_email: Mapped[str | None] = mapped_column(String(320), nullable=True)

    action: Mapped[str] = mapped_column(String(128), nullable=False)  # e.g. "finance.unarchive"
    entity_type: Mapped[str | None] = mapped_column(String(128), nullable=True)  # e.g. "FinanceTransaction"
    entity_id: Mapped[str | None] = mapped_column(String(128), nullable=True)

    reason: Mapped[str | None] = mapped_column(String(512), nullable=True)
    metadata_json: Mapped[str | None] = mapped_column(Text, nullable=True)  # small JSON string
    client_ip: Mapped[str | None] = mapped_column(String(64), nullable=True)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class ArchivableMixin:
    """
    Audit stamps + archive triple shared by every lifecycle-managed record.
    is_archived == False <=> archived_at and archived_by_user_id are both NULL.
    """

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    @declared_attr
    def created_by_user_id(cls) -> Mapped[int]:
        return mapped_column(ForeignKey("users.id"), nullable=False)

    @declared_attr
    def updated_by_user_id(cls) -> Mapped[int]:
        return mapped_column(ForeignKey("users.id"), nullable=False)

    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    @declared_attr
    def archived_by_user_id(cls) -> Mapped[int | None]:
        return mapped_column(ForeignKey("users.id"), nullable=True)

    def lifecycle_dict(self) -> dict:
        return {
            "notes": self.notes,
            "createdAt": _iso(self.created_at),
            "createdBy": self.created_by_user_id,
            "updatedAt": _iso(self.updated_at),
            "updatedBy": self.updated_by_user_id,
            "isArchived": bool(self.is_archived),
            "archivedAt": _iso(self.archived_at),
            "archivedBy": self.archived_by_user_id,
        }


class LookupMixin:
    """Settings lookup item: unique name, deactivation instead of deletion."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    @declared_attr
    def created_by_user_id(cls) -> Mapped[int | None]:
        return mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    deactivated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    @declared_attr
    def deactivated_by_user_id(cls) -> Mapped[int | None]:
        return mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "createdAt": _iso(self.created_at),
            "createdBy": self.created_by_user_id,
            "deactivatedAt": _iso(self.deactivated_at),
        }


# Ensure module models are imported so Base.metadata includes their tables.
# (Kept at bottom to avoid circular imports.)
from app.backoffice.modules.settings.models import (  # noqa: E402,F401
    CancellationReason,
    Governorate,
    PaymentMethod,
    System,
)
from app.backoffice.modules.cancelled_orders.models import CancelledOrder  # noqa: E402,F401
from app.backoffice.modules.late_orders.models import LateOrder  # noqa: E402,F401
from app.backoffice.modules.installment_orders.models import InstallmentOrder  # noqa: E402,F401
from app.backoffice.modules.finance.models import FinanceTransaction  # noqa: E402,F401
from app.backoffice.modules.reward_points.models import RewardPointsAddition  # noqa: E402,F401
from app.backoffice.modules.inactive_coupons.models import InactiveCoupon  # noqa: E402,F401
