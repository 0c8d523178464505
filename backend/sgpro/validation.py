from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .permissions import Role
from .utils import validate_date, validate_email

if TYPE_CHECKING:
    from .store import Store


# Field kinds understood by validate_payload()
STR = "str"
NUMBER = "number"
INT = "int"
BOOL = "bool"
DATE = "date"


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate product code)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set, mapped to a field kind
    - required_on_create: fields required for POST
    """
    writable_fields: dict[str, str]
    required_on_create: frozenset[str] = frozenset()


def coerce_value(key: str, kind: str, value: Any):
    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if kind == INT:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{key} must be an integer")
            if "e" in stripped.lower():
                raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
            if "." in stripped:
                raise ValidationError(f"{key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{key} must be an integer")
        if isinstance(value, float) and value.is_integer():
            return int(value)
        raise ValidationError(f"{key} must be an integer")

    if kind == NUMBER:
        if isinstance(value, bool):
            raise ValidationError(f"{key} must be a number")
        if isinstance(value, (int, float)):
            number = value
        elif isinstance(value, str):
            try:
                number = float(value.strip().replace(",", "."))
            except ValueError:
                raise ValidationError(f"{key} must be a number")
        else:
            raise ValidationError(f"{key} must be a number")
        if math.isnan(number) or math.isinf(number):
            raise ValidationError(f"{key} must be a finite number")
        return number

    if kind == BOOL:
        if isinstance(value, bool):
            return value
        # fallback: truthiness
        return bool(value)

    # Calendar days (YYYY-MM-DD)
    if kind == DATE:
        text = str(value).strip()
        if len(text) != 10 or not validate_date(text):
            raise ValidationError(f"{key} must be an ISO date (YYYY-MM-DD)")
        return text

    # Strings / Text
    return str(value).strip()


def validate_payload(
    *,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against a policy.
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if payload.get(f) is None)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")

    patch: dict = {}
    for k, raw in payload.items():
        kind = policy.writable_fields[k]
        val = coerce_value(k, kind, raw)

        if kind == STR and val == "" and k in policy.required_on_create:
            raise ValidationError(f"{k} cannot be blank")

        if val is None and k in policy.required_on_create:
            raise ValidationError(f"{k} cannot be null")

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict, *, store: "Store", product_id: str | None = None) -> None:
    """
    Business rules that span fields or records.
    On update the stored values fill in whatever the patch omits.
    """
    current = store.get_product(product_id) if product_id else None

    cost = patch.get("cost", current.cost if current else 0)
    price = patch.get("price", current.price if current else None)
    stock = patch.get("stock", current.stock if current else 0)

    if cost is not None and cost < 0:
        raise ValidationError("cost must be >= 0")
    if stock is not None and stock < 0:
        raise ValidationError("stock cannot be negative")
    if price is not None and cost is not None and price <= cost:
        raise ValidationError("price must be greater than cost")

    code = patch.get("code")
    if code:
        existing = store.get_product_by_code(code)
        if existing is not None and existing.id != product_id:
            raise ConflictError("Product code already exists.")


def enforce_rules_expense(patch: dict) -> None:
    if "value" in patch and patch["value"] is not None and patch["value"] < 0:
        raise ValidationError("value must be >= 0")


def enforce_rules_user(patch: dict, *, store: "Store", user_id: str | None = None) -> None:
    creating = user_id is None

    if creating and not patch.get("password"):
        raise ValidationError("password is required for new users")

    if "email" in patch and not validate_email(patch["email"]):
        raise ValidationError("email must be a valid e-mail address")

    if "profile" in patch and Role.parse(patch["profile"]) is None:
        raise ValidationError(f"profile must be one of: {', '.join(r.value for r in Role)}")

    username = patch.get("username")
    if username:
        existing = store.get_user_by_username(username)
        if existing is not None and existing.id != user_id:
            raise ConflictError("Username already exists.")


def enforce_rules_settings(patch: dict) -> None:
    if patch.get("lowStockThreshold") is not None and patch["lowStockThreshold"] < 0:
        raise ValidationError("lowStockThreshold must be >= 0")
    if patch.get("taxRate") is not None and patch["taxRate"] < 0:
        raise ValidationError("taxRate must be >= 0")


def validate_sale_payload(payload: dict, *, store: "Store") -> dict:
    """
    Checks a new sale before it reaches the Store: client present, at least one
    item, every item referencing a known product with a positive integer
    quantity, and enough stock for the combined quantities.
    Returns the cleaned payload.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    client = str(payload.get("client") or "").strip()
    if not client:
        raise ValidationError("client is required")

    raw_items = payload.get("items")
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("At least one item is required")

    items = []
    demand: dict[str, int] = {}
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")

        product_id = raw.get("productId")
        product = store.get_product(product_id)
        if product is None:
            raise ValidationError(f"items[{index}]: product not found")

        quantity = coerce_value(f"items[{index}].quantity", INT, raw.get("quantity"))
        if quantity is None or quantity < 1:
            raise ValidationError(f"items[{index}].quantity must be >= 1")

        item = {"productId": product.id, "quantity": quantity}
        if raw.get("price") is not None:
            price = coerce_value(f"items[{index}].price", NUMBER, raw["price"])
            if price < 0:
                raise ValidationError(f"items[{index}].price must be >= 0")
            item["price"] = price
        items.append(item)
        demand[product.id] = demand.get(product.id, 0) + quantity

    for product_id, quantity in demand.items():
        product = store.get_product(product_id)
        if product.stock < quantity:
            raise ConflictError(f"Insufficient stock for {product.name} (available: {product.stock})")

    cleaned = {"client": client, "items": items}
    if payload.get("date"):
        cleaned["date"] = coerce_value("date", DATE, payload["date"])
    return cleaned
