from __future__ import annotations

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.backoffice.models import ArchivableMixin, Base


class InstallmentOrder(ArchivableMixin, Base):
    __tablename__ = "installment_orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # Editable by every role
    order_number: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    installment_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    is_added_to_magento: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Editable only with EDIT_INSTALLMENT_ADMIN
    cardholder_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cardholder_mother_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cardholder_phone_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
