# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import current_app, g, jsonify, request

from .services import session_service


STORE_EXTENSION_KEY = "sgpro_store"


def get_store():
    """The Store instance owned by the running application."""
    return current_app.extensions[STORE_EXTENSION_KEY]


def require_auth(f):
    """
    Require the bearer token of the active session.

    Sets g.store and g.current_user (the SessionUser snapshot).
    Returns 401 when the Authorization header is missing or the token
    does not belong to the active session.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]
        store = get_store()
        session_user = session_service.validate_token(store, token)

        if session_user is None:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.store = store
        g.current_user = session_user
        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """
    Require a capability from the session's permission set,
    e.g. "products.create" or "dashboard". Returns 403 when missing.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not hasattr(g, "current_user"):
                return jsonify({"error": "Authentication required"}), 401

            if not session_service.has_permission(g.store, permission_code):
                current_app.logger.warning(
                    "Permission denied: user=%s profile=%s permission=%s path=%s",
                    g.current_user.username,
                    g.current_user.profile,
                    permission_code,
                    request.path,
                )
                return jsonify({
                    "error": "Permission denied",
                    "permission": permission_code,
                }), 403

            return f(*args, **kwargs)
        return decorated_function
    return decorator
