from __future__ import annotations

from sqlalchemy import Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.backoffice.models import ArchivableMixin, Base


class InactiveCoupon(ArchivableMixin, Base):
    __tablename__ = "inactive_coupons"
    __table_args__ = (
        Index("idx_inactive_coupons_sales_order", "sales_order"),
        Index("idx_inactive_coupons_coupon_code", "coupon_code"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    sales_order: Mapped[str] = mapped_column(String(64), nullable=False)
    coupon_code: Mapped[str] = mapped_column(String(128), nullable=False)
