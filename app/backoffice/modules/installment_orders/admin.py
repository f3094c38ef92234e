from __future__ import annotations

from flask import current_app, jsonify, request

from app.backoffice.db import db_session
from app.backoffice.errors import ValidationError
from app.backoffice.modules.installment_orders import service
from app.backoffice.modules.installment_orders.parsers import parse_cardholder_sheet
from app.backoffice.rbac import current_user, require_login, require_permission
from app.backoffice.records import RecordAccess, RecordResource, build_record_blueprint, needs

resource = RecordResource(
    name="installment-orders",
    lifecycle=service.lifecycle,
    access=RecordAccess(
        create=needs("CREATE_RECORD"),
        edit=needs("EDIT_INSTALLMENT_BASIC"),
        archive=needs("ARCHIVE_RECORD"),
        view_archived=needs("VIEW_ARCHIVE"),
        hard_delete=needs("HARD_DELETE_RECORD"),
    ),
    parse_payload=service.parse_payload,
    serialize=service.serialize,
    collection_key="orders",
    item_key="order",
    search_columns=service.search_columns,
    delete_is_hard=True,
    label="Order",
)

bp = build_record_blueprint(resource)


@bp.delete("/installment-orders/bulk-delete")
@require_permission("HARD_DELETE_RECORD")
def installment_orders_bulk_delete():
    s = db_session()
    user = current_user()
    count = service.lifecycle.hard_delete_all(s, user)
    s.commit()
    current_app.logger.warning("Bulk delete: %s installment orders removed by user %s", count, user.id)
    return jsonify({"message": f"Permanently deleted {count} orders", "count": count})


@bp.post("/installment-orders/import")
@require_login
def installment_orders_import():
    f = request.files.get("file")
    if not f or not f.filename:
        raise ValidationError("No file provided")
    try:
        rows, errors = parse_cardholder_sheet(f.filename, f.read())
    except ValueError as e:
        raise ValidationError(str(e)) from None

    s = db_session()
    user = current_user()
    result = service.import_cardholders(s, rows, errors, user)
    s.commit()
    current_app.logger.info(
        "Cardholder import by user %s: %s updated, %s not found", user.id, result["updated"], result["notFound"]
    )
    return jsonify(result)
