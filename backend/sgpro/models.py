# Overview: SQLAlchemy model backing the durable key-value storage.

from __future__ import annotations

from .extensions import db
from .time_utils import utcnow


class StorageEntry(db.Model):
    """
    One persisted key (e.g. "sgpro_products") holding a JSON document.

    Every save overwrites the whole value for its key; there are no partial
    or delta writes.
    """
    __tablename__ = "storage_entries"

    key = db.Column(db.String(128), primary_key=True)
    value = db.Column(db.Text, nullable=False)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

