from __future__ import annotations

from datetime import datetime, time
from typing import TYPE_CHECKING

from app.backoffice.db import db_session
from app.backoffice.lifecycle import LifecyclePolicy, RecordLifecycle
from app.backoffice.modules.late_orders.models import LateOrder
from app.backoffice.modules.settings.models import Governorate
from app.backoffice.modules.settings.service import ensure_active_reference
from app.backoffice.records import iso, parse_date, parse_datetime, parse_int, require_fields, text

if TYPE_CHECKING:
    from app.backoffice.models import User


lifecycle: RecordLifecycle[LateOrder] = RecordLifecycle(
    LateOrder,
    entity_type="LateOrder",
    action_prefix="late_order",
    policy=LifecyclePolicy(supports_archive=True),
)


def parse_payload(body: dict, user: "User", existing: LateOrder | None = None) -> dict:
    require_fields(
        body,
        ("orderNumber", "governorateId", "orderDate"),
        "Order number, governorate, and order date are required",
    )
    governorate_id = parse_int(body.get("governorateId"), "governorate")
    return {
        "order_number": text(body, "orderNumber"),
        "governorate_id": ensure_active_reference(
            db_session(), Governorate, governorate_id, "governorate", current=existing.governorate_id if existing else None
        ),
        "order_date": parse_datetime(body.get("orderDate"), "date"),
        "notes": text(body, "notes"),
    }


def serialize(order: LateOrder) -> dict:
    return {
        "id": order.id,
        "orderNumber": order.order_number,
        "governorateId": order.governorate_id,
        "orderDate": iso(order.order_date),
        **order.lifecycle_dict(),
    }


def search_columns():
    return (LateOrder.order_number, LateOrder.notes)


def filters(args) -> list:
    """governorateId, and an inclusive fromDate/toDate day range on order_date."""
    conditions = []
    governorate_id = (args.get("governorateId") or "").strip()
    if governorate_id.isdigit():
        conditions.append(LateOrder.governorate_id == int(governorate_id))

    from_date = parse_date(args.get("fromDate"))
    to_date = parse_date(args.get("toDate"))
    if from_date:
        conditions.append(LateOrder.order_date >= datetime.combine(from_date, time.min))
    if to_date:
        conditions.append(LateOrder.order_date <= datetime.combine(to_date, time.max))
    return conditions
