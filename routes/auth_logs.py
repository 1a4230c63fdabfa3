from flask import Blueprint, g, jsonify, request

from security.sequence import is_success
from utils.auth_context import login_required

auth_logs_bp = Blueprint("auth_logs", __name__, url_prefix="/auth")


@auth_logs_bp.get("/logs")
@login_required
def list_auth_logs():
    limit = request.args.get("limit", type=int) or 50
    limit = max(1, min(limit, 500))

    tracker = g.user.auth_log
    rows = tracker.store.recent(g.user.id, limit=limit)

    out = []
    for row in rows:
        item = row.to_dict()
        item["success"] = is_success(row, tracker.settings.error_default)
        out.append(item)

    return jsonify(out), 200
