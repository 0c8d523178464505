# Overview: Flask API routes for login, logout and the current session.

from flask import Blueprint, g, jsonify, request

from ..decorators import get_store, require_auth
from ..services import session_service


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Open the session.

    Body: {"username": str, "password": str}
    Returns 200 with the session user and a bearer token, 400 on missing fields,
    401 on bad credentials or an inactive account.
    """
    data = request.get_json(silent=True) or {}
    username = str(data.get("username") or "").strip()
    password = data.get("password")

    if not username or not password:
        return jsonify({"error": "username and password required"}), 400

    result = session_service.login(get_store(), username, str(password))
    if not result.success:
        return jsonify(result.to_dict()), 401
    return jsonify(result.to_dict()), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    closed = session_service.logout(g.store)
    return jsonify({"success": True, "sessionClosed": closed}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    """The session snapshot, including the permission set."""
    return jsonify({"user": g.current_user.to_dict()}), 200
