# backend/sgpro/routes/system.py
"""
System endpoints: health, settings and whole-store backup/restore.

- /health needs no session
- settings read/write need settings.view / settings.edit
- export needs reports.export; import and clear need settings.edit
"""

import time

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import get_store, require_auth, require_permission
from ..services import import_service
from ..services.audit_service import ACTION_CREATE, MODULE_SYSTEM
from ..time_utils import utcnow
from ..validation import (
    BOOL,
    INT,
    NUMBER,
    STR,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_settings,
    validate_payload,
)

SETTINGS_POLICY = ModelValidationPolicy(
    writable_fields={
        "companyName": STR,
        "currency": STR,
        "dateFormat": STR,
        "lowStockThreshold": INT,
        "taxRate": NUMBER,
        "readOnlyMode": BOOL,
    },
)

CLEAR_CONFIRMATION = "CLEAR"

system_bp = Blueprint("system", __name__)


def check_storage_health() -> dict:
    """Probe the key-value storage behind the Store."""
    start_time = time.time()
    store = get_store()
    try:
        available = store.storage.is_available()
        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy" if available else "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "keys": len(store.storage.keys()) if available else 0,
                "read_only_mode": store.settings.read_only_mode,
            },
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Storage health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Storage error",
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: storage writable (status "degraded" while read-only mode is on)
    - 503: storage unavailable
    """
    storage_health = check_storage_health()

    if storage_health["status"] == "unhealthy":
        overall_status = "unhealthy"
        http_status = 503
    elif get_store().settings.read_only_mode:
        overall_status = "degraded"
        http_status = 200
    else:
        overall_status = "healthy"
        http_status = 200

    response = {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "checks": {"storage": storage_health},
    }
    return response, http_status


@system_bp.get("/api/system/settings")
@require_auth
@require_permission("settings.view")
def get_settings():
    return jsonify(g.store.settings.to_dict()), 200


@system_bp.put("/api/system/settings")
@require_auth
@require_permission("settings.edit")
def update_settings():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=SETTINGS_POLICY, partial=True)
        enforce_rules_settings(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    settings = g.store.update_settings(patch)
    return jsonify(settings.to_dict()), 200


@system_bp.get("/api/system/export")
@require_auth
@require_permission("reports.export")
def export_data():
    data = import_service.export_all_data(g.store)
    g.store.add_log(ACTION_CREATE, MODULE_SYSTEM, "Backup exported")
    return jsonify(data), 200


@system_bp.post("/api/system/import")
@require_auth
@require_permission("settings.edit")
def import_data():
    """
    Body: a payload shaped like /api/system/export output.
    Query params:
    - merge: bool (default false)
    """
    merge = request.args.get("merge", "false").lower() == "true"
    payload = request.get_json(silent=True)

    try:
        summary = import_service.import_data(g.store, payload, merge=merge)
    except import_service.DataImportError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Data import failed")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"success": True, "imported": summary, "merge": merge}), 200


@system_bp.post("/api/system/clear")
@require_auth
@require_permission("settings.edit")
def clear_data():
    """Body: {"confirm": "CLEAR"}. Users and settings survive."""
    payload = request.get_json(silent=True) or {}
    if payload.get("confirm") != CLEAR_CONFIRMATION:
        return jsonify({"error": f'Confirmation required: send {{"confirm": "{CLEAR_CONFIRMATION}"}}'}), 400

    import_service.clear_all_data(g.store)
    return jsonify({"success": True}), 200
