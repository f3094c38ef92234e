from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.backoffice.models import ArchivableMixin, Base


class RewardPointsAddition(ArchivableMixin, Base):
    __tablename__ = "reward_points_additions"
    __table_args__ = (Index("idx_reward_points_order_number", "order_number"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_number: Mapped[str] = mapped_column(String(64), nullable=False)
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    order_status: Mapped[str] = mapped_column(String(64), nullable=False)
    delivery_date: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
