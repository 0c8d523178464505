# Overview: Flask API routes for the audit log: filtered listing, export and manual clearing.

import json

from flask import Blueprint, Response, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..time_utils import date_iso

logs_bp = Blueprint("logs", __name__, url_prefix="/api/logs")


def _filters_from_args() -> dict:
    return {
        "action": request.args.get("action"),
        "module": request.args.get("module"),
        "date": request.args.get("date"),
        "userId": request.args.get("user_id"),
        "search": request.args.get("search"),
    }


@logs_bp.get("")
@require_auth
@require_permission("logs.view")
def list_logs():
    """
    Newest first.

    Query params (all optional, combined with AND):
    - action, module: exact match; "all" disables the filter
    - date: YYYY-MM-DD prefix of the timestamp
    - user_id: actor id
    - search: substring of details, module or user name
    - limit: int - cap the number of entries returned
    """
    entries = g.store.filter_logs(_filters_from_args())
    total = len(entries)

    limit = request.args.get("limit", type=int)
    if limit is not None and limit >= 0:
        entries = entries[:limit]

    return jsonify({"logs": [e.to_dict() for e in entries], "count": total}), 200


@logs_bp.get("/export")
@require_auth
@require_permission("logs.export")
def export_logs():
    entries = g.store.filter_logs(_filters_from_args())
    body = json.dumps([e.to_dict() for e in entries], ensure_ascii=False, indent=2)
    return Response(
        body,
        mimetype="application/json",
        headers={"Content-Disposition": f"attachment; filename=logs_{date_iso()}.json"},
    )


@logs_bp.post("/clear")
@require_auth
@require_permission("settings.edit")
def clear_logs_route():
    entry = g.store.clear_logs()
    return jsonify({"success": True, "log": entry.to_dict()}), 200
