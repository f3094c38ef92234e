from __future__ import annotations

from typing import TYPE_CHECKING

from app.backoffice.db import db_session
from app.backoffice.errors import ValidationError
from app.backoffice.lifecycle import LifecyclePolicy, RecordLifecycle
from app.backoffice.modules.cancelled_orders.models import CancelledOrder
from app.backoffice.modules.settings.models import CancellationReason, System
from app.backoffice.modules.settings.service import ensure_active_reference
from app.backoffice.records import money, parse_decimal, parse_int, require_fields, text

if TYPE_CHECKING:
    from app.backoffice.models import User


PAYMENT_INSTALLMENT = "Pay in Installment"
VALID_PAYMENT_METHODS = (
    "Cash on Delivery",
    PAYMENT_INSTALLMENT,
    "Pay using Visa/Master card",
    "Zain Cash",
)

lifecycle: RecordLifecycle[CancelledOrder] = RecordLifecycle(
    CancelledOrder,
    entity_type="CancelledOrder",
    action_prefix="cancelled_order",
    policy=LifecyclePolicy(supports_archive=True),
)


def parse_payload(body: dict, user: "User", existing: CancelledOrder | None = None) -> dict:
    require_fields(
        body,
        ("orderNumber", "cancellationReasonId", "systemId", "paymentMethod"),
        "Order number, cancellation reason, system, and payment method are required",
    )
    payment_method = text(body, "paymentMethod")
    if payment_method not in VALID_PAYMENT_METHODS:
        raise ValidationError("Invalid payment method")

    cardholder_name = text(body, "cardholderName")
    total_amount = parse_decimal(body.get("totalAmount"), "total amount")
    if payment_method == PAYMENT_INSTALLMENT and (not cardholder_name or total_amount is None):
        raise ValidationError("Cardholder name and total amount are required for installment payments")

    s = db_session()
    return {
        "order_number": text(body, "orderNumber"),
        "cancellation_reason_id": ensure_active_reference(
            s, CancellationReason, parse_int(body.get("cancellationReasonId"), "cancellation reason"), "cancellation reason",
            current=existing.cancellation_reason_id if existing else None,
        ),
        "system_id": ensure_active_reference(
            s, System, parse_int(body.get("systemId"), "system"), "system", current=existing.system_id if existing else None
        ),
        "payment_method": payment_method,
        "cardholder_name": cardholder_name,
        "total_amount": total_amount,
        "notes": text(body, "notes"),
    }


def serialize(order: CancelledOrder) -> dict:
    return {
        "id": order.id,
        "orderNumber": order.order_number,
        "cancellationReasonId": order.cancellation_reason_id,
        "systemId": order.system_id,
        "paymentMethod": order.payment_method,
        "cardholderName": order.cardholder_name,
        "totalAmount": money(order.total_amount),
        **order.lifecycle_dict(),
    }


def search_columns():
    return (CancelledOrder.order_number, CancelledOrder.cardholder_name, CancelledOrder.notes)
