# Overview: Durable key-value persistence used by the Store (localStorage-style API).

"""
Storage backends expose the small surface the Store needs:

    get_item(key) -> str | None
    set_item(key, value: str) -> None
    remove_item(key) -> None
    is_available() -> bool

Values are JSON text. Writes overwrite the whole value of a key.
Backends raise StorageError on failure; the Store catches it.
"""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from .extensions import db
from .models import StorageEntry


PROBE_KEY = "__storage_test__"


class StorageError(Exception):
    """Raised when the persistence layer cannot read or write a key."""
    pass


class StorageQuotaExceeded(StorageError):
    pass


class KeyValueStorage:
    def get_item(self, key: str) -> str | None:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError

    def keys(self) -> list[str]:
        raise NotImplementedError

    def is_available(self) -> bool:
        """Probe with a throwaway key, like a browser storage availability check."""
        try:
            self.set_item(PROBE_KEY, PROBE_KEY)
            self.remove_item(PROBE_KEY)
            return True
        except StorageError:
            return False


class MemoryStorage(KeyValueStorage):
    """
    Process-local storage. `quota_bytes` caps the total size of stored values
    so quota failures can be reproduced.
    """

    def __init__(self, quota_bytes: int | None = None):
        self._items: dict[str, str] = {}
        self.quota_bytes = quota_bytes

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            used = sum(len(v) for k, v in self._items.items() if k != key)
            if used + len(value) > self.quota_bytes:
                raise StorageQuotaExceeded(f"Quota exceeded writing {key}")
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._items)


class SqlStorage(KeyValueStorage):
    """
    Storage backed by the `storage_entries` table. Requires an app context.
    Each write commits immediately.
    """

    def get_item(self, key: str) -> str | None:
        try:
            entry = db.session.get(StorageEntry, key)
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError(f"Failed to read {key}") from exc
        return entry.value if entry else None

    def set_item(self, key: str, value: str) -> None:
        try:
            entry = db.session.get(StorageEntry, key)
            if entry is None:
                db.session.add(StorageEntry(key=key, value=value))
            else:
                entry.value = value
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError(f"Failed to write {key}") from exc

    def remove_item(self, key: str) -> None:
        try:
            db.session.query(StorageEntry).filter(StorageEntry.key == key).delete()
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError(f"Failed to remove {key}") from exc

    def keys(self) -> list[str]:
        try:
            rows = db.session.query(StorageEntry.key).order_by(StorageEntry.key.asc()).all()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError("Failed to list keys") from exc
        return [row.key for row in rows]

