from __future__ import annotations

from decimal import Decimal

from sqlalchemy import ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.backoffice.models import ArchivableMixin, Base


class FinanceTransaction(ArchivableMixin, Base):
    __tablename__ = "finance_transactions"
    __table_args__ = (
        Index("idx_finance_transactions_phone_number", "phone_number"),
        Index("idx_finance_transactions_order_number", "order_number"),
        Index("idx_finance_transactions_status", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    phone_number: Mapped[str] = mapped_column(String(64), nullable=False)
    order_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    payment_method_id: Mapped[int] = mapped_column(ForeignKey("payment_methods.id"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False)  # pending, completed, cancelled, refunded
