from __future__ import annotations

from typing import TYPE_CHECKING

from app.backoffice.lifecycle import LifecyclePolicy, RecordLifecycle
from app.backoffice.modules.inactive_coupons.models import InactiveCoupon
from app.backoffice.records import require_fields, text

if TYPE_CHECKING:
    from app.backoffice.models import User


lifecycle: RecordLifecycle[InactiveCoupon] = RecordLifecycle(
    InactiveCoupon,
    entity_type="InactiveCoupon",
    action_prefix="inactive_coupon",
    policy=LifecyclePolicy(supports_archive=True),
)


def parse_payload(body: dict, user: "User", existing: InactiveCoupon | None = None) -> dict:
    require_fields(body, ("salesOrder", "couponCode"), "Sales order and coupon code are required")
    return {
        "sales_order": text(body, "salesOrder"),
        "coupon_code": text(body, "couponCode"),
        "notes": text(body, "notes"),
    }


def serialize(record: InactiveCoupon) -> dict:
    return {
        "id": record.id,
        "salesOrder": record.sales_order,
        "couponCode": record.coupon_code,
        **record.lifecycle_dict(),
    }


def search_columns():
    return (InactiveCoupon.sales_order, InactiveCoupon.coupon_code)
