from __future__ import annotations

from typing import TYPE_CHECKING

from app.backoffice.lifecycle import LifecyclePolicy, RecordLifecycle
from app.backoffice.modules.reward_points.models import RewardPointsAddition
from app.backoffice.records import iso, parse_datetime, require_fields, text

if TYPE_CHECKING:
    from app.backoffice.models import User


lifecycle: RecordLifecycle[RewardPointsAddition] = RecordLifecycle(
    RewardPointsAddition,
    entity_type="RewardPointsAddition",
    action_prefix="reward_points",
    policy=LifecyclePolicy(supports_archive=True),
)


def parse_payload(body: dict, user: "User", existing: RewardPointsAddition | None = None) -> dict:
    require_fields(
        body,
        ("orderNumber", "customerName", "orderStatus", "deliveryDate"),
        "Order number, customer name, order status, and delivery date are required",
    )
    return {
        "order_number": text(body, "orderNumber"),
        "customer_name": text(body, "customerName"),
        "order_status": text(body, "orderStatus"),
        "delivery_date": parse_datetime(body.get("deliveryDate"), "delivery date"),
        "notes": text(body, "notes"),
    }


def serialize(record: RewardPointsAddition) -> dict:
    return {
        "id": record.id,
        "orderNumber": record.order_number,
        "customerName": record.customer_name,
        "orderStatus": record.order_status,
        "deliveryDate": iso(record.delivery_date),
        **record.lifecycle_dict(),
    }


def search_columns():
    return (RewardPointsAddition.order_number, RewardPointsAddition.customer_name)
