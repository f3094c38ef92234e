from __future__ import annotations

from flask import jsonify

from app.backoffice.db import db_session
from app.backoffice.modules.finance import service
from app.backoffice.modules.settings.models import PaymentMethod
from app.backoffice.modules.settings.service import list_items
from app.backoffice.permissions import FinanceOperation
from app.backoffice.rbac import require_finance_access
from app.backoffice.records import RecordAccess, RecordResource, build_record_blueprint, needs_finance

_view = needs_finance(FinanceOperation.VIEW)
_manage = needs_finance(FinanceOperation.MANAGE)

resource = RecordResource(
    name="finance",
    lifecycle=service.lifecycle,
    access=RecordAccess(
        create=_manage,
        edit=_manage,
        archive=_manage,
        unarchive=_manage,
        view=_view,
        view_archived=_view,
    ),
    parse_payload=service.parse_payload,
    serialize=service.serialize,
    collection_key="transactions",
    item_key="transaction",
    search_columns=service.search_columns,
    filters=service.filters,
    label="Transaction",
)

bp = build_record_blueprint(resource)


@bp.get("/finance/options")
@require_finance_access(FinanceOperation.VIEW)
def finance_options():
    methods = list_items(db_session(), PaymentMethod)
    return jsonify(
        {
            "paymentMethods": [{"id": m.id, "name": m.name} for m in methods],
            "statuses": list(service.VALID_STATUSES),
        }
    )
