from __future__ import annotations

from decimal import Decimal

from sqlalchemy import ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.backoffice.models import ArchivableMixin, Base


class CancelledOrder(ArchivableMixin, Base):
    __tablename__ = "cancelled_orders"
    __table_args__ = (
        Index("idx_cancelled_orders_order_number", "order_number"),
        Index("idx_cancelled_orders_payment_method", "payment_method"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_number: Mapped[str] = mapped_column(String(64), nullable=False)
    cancellation_reason_id: Mapped[int] = mapped_column(ForeignKey("cancellation_reasons.id"), nullable=False)
    system_id: Mapped[int] = mapped_column(ForeignKey("systems.id"), nullable=False)

    # Cash on Delivery, Pay in Installment, Pay using Visa/Master card, Zain Cash
    payment_method: Mapped[str] = mapped_column(String(64), nullable=False)

    # Installment payments only
    cardholder_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    total_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
