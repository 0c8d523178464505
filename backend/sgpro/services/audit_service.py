# Overview: Bounded, append-only audit log of every mutating Store action.

"""
Audit Log

Entries are kept newest-first and capped at MAX_LOG_ENTRIES; the oldest
entries are dropped on overflow. Every append persists the log key only,
never the rest of the Store state.

When no explicit actor is given, the entry is attributed to the session
user, or to SYSTEM_USER_NAME with a null user id when nobody is logged in.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from ..entities import LogEntry
from ..time_utils import now_iso
from ..utils import generate_id

if TYPE_CHECKING:
    from ..entities import SessionUser


MAX_LOG_ENTRIES = 1000
SYSTEM_USER_NAME = "Sistema"

ACTION_CREATE = "create"
ACTION_UPDATE = "update"
ACTION_DELETE = "delete"
ACTION_LOGIN = "login"
ACTION_LOGOUT = "logout"
ACTION_SYSTEM = "system"
ALL_ACTIONS = {ACTION_CREATE, ACTION_UPDATE, ACTION_DELETE, ACTION_LOGIN, ACTION_LOGOUT, ACTION_SYSTEM}

MODULE_PRODUCTS = "products"
MODULE_SALES = "sales"
MODULE_EXPENSES = "expenses"
MODULE_USERS = "users"
MODULE_SYSTEM = "system"


class AuditLog:
    def __init__(
        self,
        session_provider: Callable[[], "SessionUser | None"],
        persist: Callable[[], None],
        max_entries: int = MAX_LOG_ENTRIES,
    ):
        self.entries: list[LogEntry] = []
        self.max_entries = max_entries
        self._session_provider = session_provider
        self._persist = persist

    def __len__(self) -> int:
        return len(self.entries)

    def add(
        self,
        action: str,
        module: str,
        details: str,
        user_id: str | None = None,
        user_name: str | None = None,
    ) -> LogEntry:
        session = self._session_provider()
        if user_id is None and session is not None:
            user_id = session.id
        if user_name is None:
            user_name = session.full_name if session is not None else SYSTEM_USER_NAME

        entry = LogEntry(
            id=generate_id("log"),
            timestamp=now_iso(),
            action=action,
            module=module,
            details=details,
            user_id=user_id,
            user_name=user_name,
        )

        self.entries.insert(0, entry)
        if len(self.entries) > self.max_entries:
            del self.entries[self.max_entries:]

        self._persist()
        return entry

    def filter(
        self,
        action: str | None = None,
        module: str | None = None,
        date: str | None = None,
        user_id: str | None = None,
        search: str | None = None,
    ) -> list[LogEntry]:
        """
        Conjunctive filter. Missing filters are no-ops, and "all" disables the
        action/module filters. `date` matches a timestamp prefix ("2025-03-14").
        `search` is a case-insensitive match on details, module and user name.
        """
        filtered = list(self.entries)

        if action and action != "all":
            filtered = [e for e in filtered if e.action == action]

        if module and module != "all":
            filtered = [e for e in filtered if e.module == module]

        if date:
            filtered = [e for e in filtered if e.timestamp.startswith(date)]

        if user_id:
            filtered = [e for e in filtered if e.user_id == user_id]

        if search:
            needle = search.lower()
            filtered = [
                e for e in filtered
                if needle in (e.details or "").lower()
                or needle in (e.module or "").lower()
                or needle in (e.user_name or "").lower()
            ]

        return filtered

    def clear(self) -> LogEntry:
        self.entries = []
        self._persist()
        return self.add(ACTION_SYSTEM, MODULE_SYSTEM, "Logs cleared manually")

    def replace(self, entries: list[LogEntry]) -> None:
        """Load entries from storage without logging or persisting."""
        self.entries = list(entries)[: self.max_entries]
