from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.backoffice.models import ArchivableMixin, Base


class LateOrder(ArchivableMixin, Base):
    __tablename__ = "late_orders"
    __table_args__ = (
        Index("idx_late_orders_order_number", "order_number"),
        Index("idx_late_orders_governorate", "governorate_id"),
        Index("idx_late_orders_order_date", "order_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_number: Mapped[str] = mapped_column(String(64), nullable=False)
    governorate_id: Mapped[int] = mapped_column(ForeignKey("governorates.id"), nullable=False)
    order_date: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
