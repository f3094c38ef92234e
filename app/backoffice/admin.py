from flask import Blueprint, jsonify, request

from app.backoffice.db import db_session
from app.backoffice.identity import create_user, deactivate_user, list_users, update_user
from app.backoffice.models import User
from app.backoffice.rbac import current_user, require_permission
from app.backoffice.records import iso, json_body

bp = Blueprint("admin", __name__)


def _user_row(user: User) -> dict:
    return {
        **user.to_public_dict(include_finance=True),
        "createdAt": iso(user.created_at),
        "deactivatedAt": iso(user.deactivated_at),
        "deactivatedBy": user.deactivated_by_user_id,
    }


# ============================================================================
# ACCOUNT MANAGEMENT (Admin Only)
# ============================================================================

@bp.get("/users")
@require_permission("MANAGE_USERS")
def users_list():
    include_deactivated = (request.args.get("deactivated") or "").strip().lower() == "true"
    search = (request.args.get("search") or request.args.get("q") or "").strip()
    users = list_users(db_session(), include_deactivated=include_deactivated, search=search)
    return jsonify({"users": [_user_row(u) for u in users]})


@bp.post("/users")
@require_permission("MANAGE_USERS")
def users_create():
    s = db_session()
    user = create_user(s, json_body(), current_user())
    s.commit()
    return jsonify({"user": _user_row(user)}), 201


@bp.put("/users/<int:user_id>")
@require_permission("MANAGE_USERS")
def users_update(user_id: int):
    s = db_session()
    user = update_user(s, user_id, json_body(), current_user())
    s.commit()
    return jsonify({"user": _user_row(user)})


@bp.delete("/users/<int:user_id>")
@require_permission("MANAGE_USERS")
def users_deactivate(user_id: int):
    s = db_session()
    deactivate_user(s, user_id, current_user())
    s.commit()
    return jsonify({"message": "User deactivated successfully"})
