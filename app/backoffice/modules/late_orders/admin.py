from __future__ import annotations

from app.backoffice.modules.late_orders import service
from app.backoffice.records import RecordAccess, RecordResource, build_record_blueprint, needs

resource = RecordResource(
    name="late-orders",
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
    filters=service.filters,
    label="Late order",
)

bp = build_record_blueprint(resource)
