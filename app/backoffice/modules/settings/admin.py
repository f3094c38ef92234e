from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.backoffice.db import db_session
from app.backoffice.modules.settings.service import (
    create_item,
    deactivate_item,
    list_items,
    lookup_kind,
    rename_item,
)
from app.backoffice.rbac import current_user, require_login, require_permission
from app.backoffice.records import json_body

bp = Blueprint("settings", __name__)


@bp.get("/settings/<kind>")
@require_login
def settings_list(kind: str):
    model, _label = lookup_kind(kind)
    include_deactivated = (request.args.get("includeDeactivated") or "").strip().lower() == "true"
    items = list_items(db_session(), model, include_deactivated=include_deactivated)
    return jsonify({"items": [i.to_dict() for i in items]})


@bp.post("/settings/<kind>")
@require_permission("MANAGE_SETTINGS")
def settings_create(kind: str):
    s = db_session()
    item = create_item(s, kind, json_body().get("name"), current_user())
    s.commit()
    return jsonify({"item": item.to_dict()}), 201


@bp.put("/settings/<kind>/<int:item_id>")
@require_permission("MANAGE_SETTINGS")
def settings_rename(kind: str, item_id: int):
    s = db_session()
    item = rename_item(s, kind, item_id, json_body().get("name"), current_user())
    s.commit()
    return jsonify({"item": item.to_dict()})


@bp.delete("/settings/<kind>/<int:item_id>")
@require_permission("DEACTIVATE_SETTINGS")
def settings_deactivate(kind: str, item_id: int):
    s = db_session()
    item = deactivate_item(s, kind, item_id, current_user())
    s.commit()
    _model, label = lookup_kind(kind)
    return jsonify({"message": f"{label} deactivated successfully", "item": item.to_dict()})
