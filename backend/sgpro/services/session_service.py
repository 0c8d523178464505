# Overview: Service-layer operations for login/logout and session permission checks.

"""
Session handling

At most one session is active per Store. Credentials are compared verbatim
(no hashing); usernames match case-insensitively, passwords case-sensitively.

Every login attempt leaves exactly one `login` audit entry:
- success: module "users", attributed to the user
- failure: module "system", details name the reason (unknown user,
  wrong password, inactive account)
The caller only sees two failure messages: invalid credentials or inactive.

A successful login issues a bearer token. Only its SHA-256 hash is kept with
the session; a new login replaces the previous token.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..entities import SessionUser
from ..permissions import has_permission as _allows
from ..time_utils import now_iso
from .audit_service import ACTION_LOGIN, ACTION_LOGOUT, MODULE_SYSTEM, MODULE_USERS

if TYPE_CHECKING:
    from ..store import Store


INVALID_CREDENTIALS_MESSAGE = "Invalid username or password."
INACTIVE_USER_MESSAGE = "User inactive. Contact the administrator."


@dataclass
class LoginResult:
    success: bool
    message: str | None = None
    user: SessionUser | None = None
    token: str | None = None

    def to_dict(self) -> dict:
        data: dict = {"success": self.success}
        if self.message is not None:
            data["message"] = self.message
        if self.user is not None:
            data["user"] = self.user.to_dict()
        if self.token is not None:
            data["token"] = self.token
        return data


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy). Sent to the client, never stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def login(store: "Store", username: str, password: str) -> LoginResult:
    user = store.get_user_by_username(username or "")

    if user is None or user.password != password:
        reason = "unknown user" if user is None else "wrong password"
        store.add_log(ACTION_LOGIN, MODULE_SYSTEM, f"Failed login for user: {username} ({reason})")
        return LoginResult(success=False, message=INVALID_CREDENTIALS_MESSAGE)

    if not user.active:
        store.add_log(
            ACTION_LOGIN, MODULE_SYSTEM, f"Failed login for user: {username} (inactive account)",
            user_id=user.id, user_name=user.full_name,
        )
        return LoginResult(success=False, message=INACTIVE_USER_MESSAGE)

    user.last_login = now_iso()
    store.current_user = SessionUser.from_user(user)
    token = generate_token()
    store.session_token_hash = hash_token(token)

    store.save_to_storage()
    store.add_log(ACTION_LOGIN, MODULE_USERS, "Login successful", user_id=user.id, user_name=user.full_name)

    return LoginResult(success=True, user=store.current_user, token=token)


def logout(store: "Store") -> bool:
    """Returns True if a session was closed."""
    session = store.current_user
    if session is not None:
        store.add_log(ACTION_LOGOUT, MODULE_USERS, "Logout", user_id=session.id, user_name=session.full_name)

    store.clear_session()
    return session is not None


def is_logged_in(store: "Store") -> bool:
    return store.current_user is not None


def validate_token(store: "Store", token: str | None) -> SessionUser | None:
    """The session user when token belongs to the active session, else None."""
    if not token or store.current_user is None or not store.session_token_hash:
        return None
    if not hmac.compare_digest(hash_token(token), store.session_token_hash):
        return None
    return store.current_user


def has_permission(store: "Store", code: str) -> bool:
    """Permission check against the active session; False when nobody is logged in."""
    if store.current_user is None:
        return False
    return _allows(store.current_user.permissions, code)
