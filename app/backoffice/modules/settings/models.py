from __future__ import annotations

from app.backoffice.models import Base, LookupMixin


class System(LookupMixin, Base):
    __tablename__ = "systems"  # e.g. Magento, NetSuite


class CancellationReason(LookupMixin, Base):
    __tablename__ = "cancellation_reasons"


class Governorate(LookupMixin, Base):
    __tablename__ = "governorates"


class PaymentMethod(LookupMixin, Base):
    __tablename__ = "payment_methods"
