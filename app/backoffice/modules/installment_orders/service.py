from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select

from app.backoffice.lifecycle import LifecyclePolicy, RecordLifecycle
from app.backoffice.modules.installment_orders.models import InstallmentOrder
from app.backoffice.modules.installment_orders.parsers import CardholderRow, ImportRowError
from app.backoffice.rbac import user_has_permission
from app.backoffice.records import require_fields, text

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.backoffice.models import User


# Cleanup of installment orders is a permanent delete; they are never archived.
lifecycle: RecordLifecycle[InstallmentOrder] = RecordLifecycle(
    InstallmentOrder,
    entity_type="InstallmentOrder",
    action_prefix="installment_order",
    policy=LifecyclePolicy(supports_archive=False, supports_hard_delete=True),
    duplicate_message="Order number or installment ID already exists",
)

CARDHOLDER_FIELDS = {
    "cardholderName": "cardholder_name",
    "cardholderMotherName": "cardholder_mother_name",
    "cardholderPhoneNumber": "cardholder_phone_number",
}


def parse_payload(body: dict, user: "User", existing: InstallmentOrder | None = None) -> dict:
    require_fields(body, ("orderNumber", "installmentId"), "Order number and installment ID are required")
    fields = {
        "order_number": text(body, "orderNumber"),
        "installment_id": text(body, "installmentId"),
        "is_added_to_magento": bool(body.get("isAddedToMagento", False)),
    }
    # Plain users may fill cardholder info on creation but not change it afterwards.
    if existing is None or user_has_permission(user, "EDIT_INSTALLMENT_ADMIN"):
        for key, column in CARDHOLDER_FIELDS.items():
            fields[column] = text(body, key)
    return fields


def serialize(order: InstallmentOrder) -> dict:
    return {
        "id": order.id,
        "orderNumber": order.order_number,
        "installmentId": order.installment_id,
        "isAddedToMagento": bool(order.is_added_to_magento),
        "cardholderName": order.cardholder_name,
        "cardholderMotherName": order.cardholder_mother_name,
        "cardholderPhoneNumber": order.cardholder_phone_number,
        **order.lifecycle_dict(),
    }


def search_columns():
    return (InstallmentOrder.order_number, InstallmentOrder.installment_id, InstallmentOrder.cardholder_name)


MAX_REPORTED_ERRORS = 10


def import_cardholders(s: "Session", rows: list[CardholderRow], errors: list[ImportRowError], actor: "User") -> dict:
    """
    Fill cardholder details on existing orders, matched by installment id.
    Blank cells keep the stored value. Unknown installment ids are counted and reported.
    """
    total = len(rows) + len(errors)
    errors = list(errors)
    updated = 0
    not_found = 0
    for row in rows:
        order = s.execute(
            select(InstallmentOrder).where(InstallmentOrder.installment_id == row.installment_id)
        ).scalar_one_or_none()
        if order is None:
            not_found += 1
            errors.append(ImportRowError(row.row_number, f"Installment ID {row.installment_id} not found"))
            continue

        fields = {
            column: value
            for column, value in (
                ("cardholder_name", row.cardholder_name),
                ("cardholder_mother_name", row.cardholder_mother_name),
                ("cardholder_phone_number", row.cardholder_phone_number),
            )
            if value
        }
        lifecycle.update(s, order.id, fields, actor)
        updated += 1

    errors.sort(key=lambda e: e.row_number)
    return {
        "success": True,
        "updated": updated,
        "notFound": not_found,
        "total": total,
        "errors": [f"Row {e.row_number}: {e.message}" for e in errors[:MAX_REPORTED_ERRORS]],
    }
