from __future__ import annotations

from app.backoffice.modules.reward_points import service
from app.backoffice.records import RecordAccess, RecordResource, build_record_blueprint, needs

resource = RecordResource(
    name="reward-points",
    lifecycle=service.lifecycle,
    access=RecordAccess(
        create=needs("CREATE_RECORD"),
        edit=needs("EDIT_RECORD"),
        archive=needs("ARCHIVE_RECORD"),
        view_archived=needs("VIEW_ARCHIVE"),
    ),
    parse_payload=service.parse_payload,
    serialize=service.serialize,
    search_columns=service.search_columns,
    label="Record",
)

bp = build_record_blueprint(resource)
