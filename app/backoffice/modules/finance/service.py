from __future__ import annotations

from typing import TYPE_CHECKING

from app.backoffice.db import db_session
from app.backoffice.errors import ValidationError
from app.backoffice.lifecycle import LifecyclePolicy, RecordLifecycle
from app.backoffice.modules.finance.models import FinanceTransaction
from app.backoffice.modules.settings.models import PaymentMethod
from app.backoffice.modules.settings.service import ensure_active_reference
from app.backoffice.records import money, parse_decimal, parse_int, require_fields, text

if TYPE_CHECKING:
    from app.backoffice.models import User


VALID_STATUSES = ("pending", "completed", "cancelled", "refunded")

# Finance is the one record type that can be brought back from the archive,
# and corrections on archived transactions are allowed.
lifecycle: RecordLifecycle[FinanceTransaction] = RecordLifecycle(
    FinanceTransaction,
    entity_type="FinanceTransaction",
    action_prefix="finance",
    policy=LifecyclePolicy(supports_archive=True, supports_unarchive=True, editable_while_archived=True),
)


def parse_payload(body: dict, user: "User", existing: FinanceTransaction | None = None) -> dict:
    require_fields(
        body,
        ("phoneNumber", "customerName", "paymentMethodId", "amount", "status"),
        "Missing required fields",
    )
    status = (text(body, "status") or "").lower()
    if status not in VALID_STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(VALID_STATUSES)}")
    amount = parse_decimal(body.get("amount"), "amount")
    if amount is None or amount <= 0:
        raise ValidationError("Amount must be greater than zero")

    payment_method_id = parse_int(body.get("paymentMethodId"), "payment method")
    return {
        "phone_number": text(body, "phoneNumber"),
        "order_number": text(body, "orderNumber"),
        "customer_name": text(body, "customerName"),
        "payment_method_id": ensure_active_reference(
            db_session(),
            PaymentMethod,
            payment_method_id,
            "payment method",
            current=existing.payment_method_id if existing else None,
        ),
        "amount": amount,
        "status": status,
        "notes": text(body, "notes"),
    }


def serialize(tx: FinanceTransaction) -> dict:
    return {
        "id": tx.id,
        "phoneNumber": tx.phone_number,
        "orderNumber": tx.order_number,
        "customerName": tx.customer_name,
        "paymentMethodId": tx.payment_method_id,
        "amount": money(tx.amount),
        "status": tx.status,
        **tx.lifecycle_dict(),
    }


def search_columns():
    return (FinanceTransaction.phone_number, FinanceTransaction.order_number, FinanceTransaction.customer_name)


def filters(args) -> list:
    conditions = []
    status = (args.get("status") or "").strip().lower()
    if status:
        conditions.append(FinanceTransaction.status == status)
    payment_method_id = (args.get("paymentMethodId") or "").strip()
    if payment_method_id.isdigit():
        conditions.append(FinanceTransaction.payment_method_id == int(payment_method_id))
    return conditions
