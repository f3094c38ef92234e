from __future__ import annotations

from flask import jsonify

from app.backoffice.db import db_session
from app.backoffice.modules.cancelled_orders import service
from app.backoffice.modules.settings.models import CancellationReason, System
from app.backoffice.modules.settings.service import list_items
from app.backoffice.rbac import require_login
from app.backoffice.records import RecordAccess, RecordResource, build_record_blueprint, needs

resource = RecordResource(
    name="cancelled-orders",
    lifecycle=service.lifecycle,
    access=RecordAccess(
        create=needs("CREATE_RECORD"),
        edit=needs("EDIT_RECORD"),
        archive=needs("ARCHIVE_RECORD"),
        view_archived=needs("VIEW_ARCHIVE"),
    ),
    parse_payload=service.parse_payload,
    serialize=service.serialize,
    collection_key="orders",
    item_key="order",
    search_columns=service.search_columns,
    label="Order",
)

bp = build_record_blueprint(resource)


@bp.get("/cancelled-orders/options")
@require_login
def cancelled_orders_options():
    s = db_session()
    return jsonify(
        {
            "cancellationReasons": [{"id": r.id, "name": r.name} for r in list_items(s, CancellationReason)],
            "systems": [{"id": x.id, "name": x.name} for x in list_items(s, System)],
            "paymentMethods": list(service.VALID_PAYMENT_METHODS),
        }
    )
