# Overview: Flask API routes for user administration; passwords never leave the server.

"""
User management routes.

All endpoints require users.* permissions (admin only by default).
Deletion refuses the logged-in user and the last remaining user.
"""
from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..validation import (
    BOOL,
    STR,
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_user,
    validate_payload,
)

USER_POLICY = ModelValidationPolicy(
    writable_fields={
        "username": STR,
        "password": STR,
        "fullName": STR,
        "email": STR,
        "profile": STR,
        "active": BOOL,
    },
    required_on_create=frozenset({"username", "fullName", "profile"}),
)

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


def user_to_dict(user) -> dict:
    data = user.to_dict()
    data.pop("password", None)
    return data


@users_bp.get("")
@require_auth
@require_permission("users.view")
def list_users():
    include_inactive = request.args.get("include_inactive", "true").lower() == "true"
    users = [u for u in g.store.users if include_inactive or u.active]
    return jsonify({"users": [user_to_dict(u) for u in users], "count": len(users)}), 200


@users_bp.get("/<user_id>")
@require_auth
@require_permission("users.view")
def get_user_route(user_id: str):
    user = g.store.get_user(user_id)
    if user is None:
        return jsonify({"error": "User not found"}), 404
    return jsonify(user_to_dict(user)), 200


@users_bp.post("")
@require_auth
@require_permission("users.create")
def create_user_route():
    """
    Body: {"username", "password", "fullName", "email"?, "profile"}
    Returns 201 with the user (password omitted).
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=USER_POLICY, partial=False)
        enforce_rules_user(patch, store=g.store)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    patch.setdefault("email", "")
    patch.pop("active", None)
    user = g.store.add_user(patch)
    return jsonify(user_to_dict(user)), 201


@users_bp.put("/<user_id>")
@require_auth
@require_permission("users.edit")
def update_user_route(user_id: str):
    """A blank or missing password keeps the current one."""
    if g.store.get_user(user_id) is None:
        return jsonify({"error": "User not found"}), 404

    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=USER_POLICY, partial=True)
        enforce_rules_user(patch, store=g.store, user_id=user_id)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    if patch.get("active") is False and g.current_user.id == user_id:
        return jsonify({"error": "You cannot deactivate your own account"}), 400

    user = g.store.update_user(user_id, patch)
    return jsonify(user_to_dict(user)), 200


@users_bp.delete("/<user_id>")
@require_auth
@require_permission("users.delete")
def delete_user_route(user_id: str):
    if g.store.get_user(user_id) is None:
        return jsonify({"error": "User not found"}), 404
    if g.current_user.id == user_id:
        return jsonify({"error": "You cannot delete your own account"}), 400

    if not g.store.delete_user(user_id):
        return jsonify({"error": "The last remaining user cannot be deleted"}), 400
    return jsonify({"success": True}), 200
