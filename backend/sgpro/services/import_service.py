# Overview: Whole-store export, import and reset.

"""
Data exchange

export_all_data() is a point-in-time plain-dict copy of every collection.
User passwords are replaced by REDACTED_PASSWORD; file formats are the
caller's concern.

import_data() merge policy:
- merge=False: products / sales / expenses present in the payload replace the
  current collections wholesale. Users are left untouched.
- merge=True: products / sales / expenses are taken only when the current
  collection is empty; users are merged by id (existing ids kept, unseen ids
  appended).
- settings present in the payload are shallow-merged in both modes.
Logs are never imported.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..entities import Expense, Product, Sale, User, to_camel
from ..time_utils import now_iso
from ..validation import BOOL, INT, NUMBER, STR, ValidationError, coerce_value, enforce_rules_settings
from .audit_service import ACTION_SYSTEM, MODULE_SYSTEM

if TYPE_CHECKING:
    from ..store import Store


REDACTED_PASSWORD = "***"


class DataImportError(ValueError):
    """Raised when an import payload is not shaped like an export."""
    pass


def export_all_data(store: "Store") -> dict:
    return {
        "products": [p.to_dict() for p in store.products],
        "sales": [s.to_dict() for s in store.sales],
        "expenses": [e.to_dict() for e in store.expenses],
        "users": [{**u.to_dict(), "password": REDACTED_PASSWORD} for u in store.users],
        "logs": [entry.to_dict() for entry in store.logs],
        "settings": store.settings.to_dict(),
        "exportDate": now_iso(),
    }


def _rows(data: dict, name: str) -> list[dict] | None:
    rows = data.get(name)
    if rows is None:
        return None
    if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
        raise DataImportError(f"{name} must be a list of objects")
    return rows


# Field kinds checked on import, keyed by attribute name. Either key style is
# accepted in the payload; unlisted keys pass through untouched.
PRODUCT_FIELDS = {
    "code": STR, "name": STR, "category": STR, "description": STR,
    "cost": NUMBER, "price": NUMBER, "stock": INT,
}
SALE_FIELDS = {"client": STR, "total": NUMBER, "cost": NUMBER}
SALE_ITEM_FIELDS = {"product_id": STR, "name": STR, "price": NUMBER, "quantity": INT, "total": NUMBER}
EXPENSE_FIELDS = {"description": STR, "category": STR, "notes": STR, "value": NUMBER}
USER_FIELDS = {
    "username": STR, "password": STR, "full_name": STR, "email": STR,
    "profile": STR, "active": BOOL,
}
SETTINGS_FIELDS = {
    "company_name": STR, "currency": STR, "date_format": STR,
    "low_stock_threshold": INT, "tax_rate": NUMBER, "read_only_mode": BOOL,
}


def _clean_fields(label: str, row: dict, kinds: dict[str, str]) -> dict:
    """
    Coerce the listed fields present in row (camelCase or snake_case) and
    return a copy keyed camelCase. Numbers must be finite and >= 0; null is
    only accepted for text, where it becomes "".
    """
    cleaned = dict(row)
    for attr, kind in kinds.items():
        camel = to_camel(attr)
        key = camel if camel in row else attr if attr in row else None
        if key is None:
            continue

        raw = cleaned.pop(key)
        cleaned.pop(attr, None)
        if raw is None and kind != STR:
            raise DataImportError(f"{label}.{camel} cannot be null")
        try:
            value = coerce_value(camel, kind, raw)
        except ValidationError as exc:
            raise DataImportError(f"{label}: {exc}") from exc

        if kind in (NUMBER, INT) and value < 0:
            raise DataImportError(f"{label}.{camel} must be >= 0")
        cleaned[camel] = "" if value is None else value
    return cleaned


def _clean_rows(name: str, rows: list[dict] | None, kinds: dict[str, str]) -> list[dict] | None:
    if rows is None:
        return None

    cleaned = []
    for index, row in enumerate(rows):
        label = f"{name}[{index}]"
        record_id = row.get("id")
        if not isinstance(record_id, str) or not record_id.strip():
            raise DataImportError(f"{label}.id must be a non-empty string")
        cleaned.append(_clean_fields(label, row, kinds))
    return cleaned


def _clean_sales(rows: list[dict] | None) -> list[dict] | None:
    cleaned = _clean_rows("sales", rows, SALE_FIELDS)
    if cleaned is None:
        return None

    for index, sale in enumerate(cleaned):
        items = sale.get("items", [])
        if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
            raise DataImportError(f"sales[{index}].items must be a list of objects")
        sale["items"] = [
            _clean_fields(f"sales[{index}].items[{position}]", item, SALE_ITEM_FIELDS)
            for position, item in enumerate(items)
        ]
    return cleaned


def _clean_settings(settings) -> dict | None:
    if settings is None:
        return None
    if not isinstance(settings, dict):
        raise DataImportError("settings must be an object")

    cleaned = _clean_fields("settings", settings, SETTINGS_FIELDS)
    try:
        enforce_rules_settings(cleaned)
    except ValidationError as exc:
        raise DataImportError(f"settings: {exc}") from exc
    return cleaned


def import_data(store: "Store", data: dict, merge: bool = False) -> dict:
    """
    Apply an exported payload to the store. Returns per-collection counts of
    what was taken.

    Every row is coerced with the same field rules as the API ("5" becomes 5,
    "abc" is refused). Raises DataImportError, naming the offending row,
    before touching any state if the payload is malformed.
    """
    if not isinstance(data, dict):
        raise DataImportError("Import payload must be an object")

    products = _clean_rows("products", _rows(data, "products"), PRODUCT_FIELDS)
    sales = _clean_sales(_rows(data, "sales"))
    expenses = _clean_rows("expenses", _rows(data, "expenses"), EXPENSE_FIELDS)
    users = _clean_rows("users", _rows(data, "users"), USER_FIELDS)
    settings = _clean_settings(data.get("settings"))

    try:
        parsed_products = [Product.from_dict(r) for r in products] if products is not None else None
        parsed_sales = [Sale.from_dict(r) for r in sales] if sales is not None else None
        parsed_expenses = [Expense.from_dict(r) for r in expenses] if expenses is not None else None
        parsed_users = [User.from_dict(r) for r in users] if users is not None else None
    except TypeError as exc:
        raise DataImportError(f"Malformed record in import payload: {exc}") from exc

    summary = {"products": 0, "sales": 0, "expenses": 0, "users": 0, "settings": False}

    if parsed_products is not None and (not merge or not store.products):
        store.products = parsed_products
        summary["products"] = len(parsed_products)

    if parsed_sales is not None and (not merge or not store.sales):
        store.sales = parsed_sales
        summary["sales"] = len(parsed_sales)

    if parsed_expenses is not None and (not merge or not store.expenses):
        store.expenses = parsed_expenses
        summary["expenses"] = len(parsed_expenses)

    if parsed_users is not None and merge:
        existing_ids = {u.id for u in store.users}
        for user in parsed_users:
            if user.id not in existing_ids:
                store.users.append(user)
                existing_ids.add(user.id)
                summary["users"] += 1

    if settings:
        store.settings.apply_patch(settings)
        summary["settings"] = True

    store.save_to_storage()
    store.add_log(ACTION_SYSTEM, MODULE_SYSTEM, "Data imported successfully")
    return summary


def clear_all_data(store: "Store") -> None:
    """Empty products, sales, expenses and logs. Users and settings survive."""
    store.products = []
    store.sales = []
    store.expenses = []
    store.audit.replace([])

    store.save_to_storage()
    store.add_log(ACTION_SYSTEM, MODULE_SYSTEM, "All data cleared")
