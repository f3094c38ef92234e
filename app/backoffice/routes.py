from flask import Blueprint, jsonify

from app.backoffice.db import db_session
from app.backoffice.modules.cancelled_orders.service import lifecycle as cancelled_orders
from app.backoffice.modules.finance.service import lifecycle as finance
from app.backoffice.modules.inactive_coupons.service import lifecycle as inactive_coupons
from app.backoffice.modules.installment_orders.service import lifecycle as installment_orders
from app.backoffice.modules.late_orders.service import lifecycle as late_orders
from app.backoffice.modules.reward_points.service import lifecycle as reward_points
from app.backoffice.rbac import require_permission

bp = Blueprint("routes", __name__)


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """
    Fast health check for k8s/DO probes. No DB access, minimal overhead.
    """
    return "ok", 200


@bp.get("/api/statistics/dashboard")
@require_permission("VIEW_DASHBOARD")
def dashboard_statistics():
    """Non-archived record counts per record type."""
    s = db_session()
    return jsonify(
        {
            "cancelledOrders": cancelled_orders.count_active(s),
            "lateOrders": late_orders.count_active(s),
            "installmentOrders": installment_orders.count_active(s),
            "financeTransactions": finance.count_active(s),
            "rewardPoints": reward_points.count_active(s),
            "inactiveCoupons": inactive_coupons.count_active(s),
        }
    )
