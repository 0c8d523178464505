# Overview: Domain records owned by the Store and their JSON wire format.

"""
Entities are plain dataclasses with snake_case attributes. The persisted
and exported JSON uses camelCase keys (createdAt, productId, fullName, ...),
so every record converts through `to_dict()` / `from_dict()`.

`from_dict()` accepts either key style; unknown keys are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, ClassVar

from .permissions import PermissionSet, get_user_permissions


def to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


class WireRecord:
    """Mixin providing camelCase (de)serialization for dataclass records."""

    # Attributes that a patch may never overwrite.
    PROTECTED_FIELDS: ClassVar[frozenset[str]] = frozenset({"id", "created_at"})

    @classmethod
    def _lookup(cls, data: dict, name: str) -> tuple[bool, Any]:
        camel = to_camel(name)
        if camel in data:
            return True, data[camel]
        if name in data:
            return True, data[name]
        return False, None

    @classmethod
    def from_dict(cls, data: dict):
        kwargs = {}
        for f in fields(cls):
            found, value = cls._lookup(data, f.name)
            if found:
                kwargs[f.name] = value
        return cls(**kwargs)

    def to_dict(self) -> dict:
        return {to_camel(f.name): getattr(self, f.name) for f in fields(self)}

    def apply_patch(self, patch: dict) -> list[str]:
        """Merge a partial update; returns the attribute names that were written."""
        written = []
        for f in fields(self):
            if f.name in self.PROTECTED_FIELDS:
                continue
            found, value = self._lookup(patch, f.name)
            if found:
                setattr(self, f.name, value)
                written.append(f.name)
        return written


@dataclass
class Product(WireRecord):
    id: str
    code: str = ""
    name: str = ""
    category: str = ""
    cost: float = 0
    price: float = 0
    stock: int = 0
    description: str = ""
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class SaleItem(WireRecord):
    """
    A sale line. `product_id` is a non-owning reference used only for stock
    adjustment; `name` and `price` are snapshots taken at sale time.
    """
    product_id: str
    name: str = ""
    price: float = 0
    quantity: int = 1
    total: float = 0


@dataclass
class Sale(WireRecord):
    id: str
    client: str = ""
    items: list[SaleItem] = field(default_factory=list)
    total: float = 0
    cost: float = 0
    date: str = ""
    user_id: str | None = None
    created_at: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "Sale":
        sale = super().from_dict(data)
        sale.items = [
            item if isinstance(item, SaleItem) else SaleItem.from_dict(item)
            for item in (sale.items or [])
        ]
        return sale

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["items"] = [item.to_dict() for item in self.items]
        return data


@dataclass
class Expense(WireRecord):
    id: str
    description: str = ""
    category: str = ""
    value: float = 0
    date: str = ""
    notes: str = ""
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class User(WireRecord):
    id: str
    username: str = ""
    password: str = ""
    full_name: str = ""
    email: str = ""
    profile: str = "operator"
    active: bool = True
    last_login: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class LogEntry(WireRecord):
    id: str
    timestamp: str
    action: str
    module: str
    details: str = ""
    user_id: str | None = None
    user_name: str | None = None


@dataclass
class Settings(WireRecord):
    company_name: str = "Minha Empresa"
    currency: str = "AOA"
    date_format: str = "dd/mm/yyyy"
    low_stock_threshold: int = 10
    tax_rate: float = 0
    read_only_mode: bool = False

    PROTECTED_FIELDS: ClassVar[frozenset[str]] = frozenset()


@dataclass
class SessionUser(WireRecord):
    """Snapshot of the logged-in user plus the permission set derived from its profile."""
    id: str
    username: str = ""
    full_name: str = ""
    email: str = ""
    profile: str = "operator"
    permissions: PermissionSet = field(default_factory=lambda: get_user_permissions(None))

    @classmethod
    def from_user(cls, user: User) -> "SessionUser":
        return cls(
            id=user.id,
            username=user.username,
            full_name=user.full_name,
            email=user.email,
            profile=user.profile,
            permissions=get_user_permissions(user.profile),
        )

    @classmethod
    def from_dict(cls, data: dict) -> "SessionUser":
        session = super().from_dict(data)
        # Permissions are always re-derived from the profile, never trusted from storage.
        session.permissions = get_user_permissions(session.profile)
        return session

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["permissions"] = self.permissions.to_dict()
        return data
