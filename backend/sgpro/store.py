# Overview: Canonical in-memory state for products, sales, expenses, users, logs and settings.

"""
Store

The single source of truth for the application. One Store is constructed per
process (see `sgpro.create_app`) and passed to every consumer; there is no
module-level state.

Contract for every mutating operation:
1. update the in-memory collections
2. persist the full snapshot to storage
3. append exactly one audit entry (which persists the log key only)

Lookups by id return None / False for unknown ids and never raise. The Store
performs no input validation beyond what it needs to keep stock consistent;
see `sgpro.validation` for the checks the API layer applies first.

Persistence failures are logged and flip `settings.read_only_mode`; the
in-memory mutation is kept.
"""

from __future__ import annotations

import json
import logging
from datetime import date, timedelta

from .entities import Expense, Product, Sale, SaleItem, SessionUser, Settings, User, LogEntry
from .services.audit_service import (
    AuditLog,
    ACTION_CREATE,
    ACTION_DELETE,
    ACTION_SYSTEM,
    ACTION_UPDATE,
    MODULE_EXPENSES,
    MODULE_PRODUCTS,
    MODULE_SALES,
    MODULE_SYSTEM,
    MODULE_USERS,
)
from .storage import KeyValueStorage, StorageError
from .time_utils import date_iso, now_iso, today as _today
from .utils import calculate_profit, filter_by_date_range, format_currency, generate_id, sum_by


logger = logging.getLogger(__name__)

DEFAULT_STORAGE_PREFIX = "sgpro_"

STORAGE_KEY_NAMES = (
    "products",
    "sales",
    "expenses",
    "users",
    "logs",
    "currentSession",
    "settings",
)


def storage_keys(prefix: str = DEFAULT_STORAGE_PREFIX) -> dict[str, str]:
    return {name: f"{prefix}{name}" for name in STORAGE_KEY_NAMES}


DEFAULT_USERS = [
    {
        "id": "user_1",
        "username": "admin",
        "password": "admin",
        "fullName": "Administrador do Sistema",
        "email": "admin@sistema.com",
        "profile": "admin",
    },
    {
        "id": "user_2",
        "username": "operador",
        "password": "operador",
        "fullName": "Operador Padrão",
        "email": "operador@sistema.com",
        "profile": "operator",
    },
    {
        "id": "user_3",
        "username": "gerente",
        "password": "gerente",
        "fullName": "Gerente Regional",
        "email": "gerente@sistema.com",
        "profile": "manager",
    },
]

SAMPLE_PRODUCTS = [
    {"id": "prod_1", "code": "ELEC001", "name": "Smartphone X200", "category": "Eletrônicos",
     "cost": 800, "price": 1499, "stock": 25, "description": "Smartphone de última geração com tela AMOLED"},
    {"id": "prod_2", "code": "ELEC002", "name": "Notebook Pro 15", "category": "Eletrônicos",
     "cost": 2500, "price": 4299, "stock": 12, "description": "Notebook profissional com processador i7"},
    {"id": "prod_3", "code": "ROUP001", "name": "Camiseta Básica", "category": "Roupas",
     "cost": 15, "price": 49.90, "stock": 100, "description": "Camiseta 100% algodão diversas cores"},
    {"id": "prod_4", "code": "ALIM001", "name": "Café Especial 500g", "category": "Alimentos",
     "cost": 25, "price": 59.90, "stock": 50, "description": "Café torrado e moído premium"},
    {"id": "prod_5", "code": "BEB001", "name": "Água Mineral 500ml", "category": "Bebidas",
     "cost": 1.50, "price": 3.50, "stock": 200, "description": "Água mineral sem gás"},
]


def _matches(query: str, *values: str | None) -> bool:
    return any(query in (value or "").lower() for value in values)


class Store:
    def __init__(
        self,
        storage: KeyValueStorage,
        prefix: str = DEFAULT_STORAGE_PREFIX,
        seed_defaults: bool = True,
    ):
        self.storage = storage
        self.keys = storage_keys(prefix)
        self.seed_defaults = seed_defaults

        self.products: list[Product] = []
        self.sales: list[Sale] = []
        self.expenses: list[Expense] = []
        self.users: list[User] = []
        self.settings = Settings()
        self.current_user: SessionUser | None = None
        self.session_token_hash: str | None = None
        self.audit = AuditLog(session_provider=lambda: self.current_user, persist=self.save_logs)

    @property
    def logs(self) -> list[LogEntry]:
        return self.audit.entries

    # -- LIFECYCLE / PERSISTENCE --

    def init(self) -> "Store":
        """Load persisted state, seed defaults into empty collections, save."""
        self.load_from_storage()
        self.initialize_default_data()
        return self

    def _read_json(self, name: str):
        raw = self.storage.get_item(self.keys[name])
        return json.loads(raw) if raw else None

    def load_from_storage(self) -> None:
        loaders = {
            "products": lambda rows: setattr(self, "products", [Product.from_dict(r) for r in rows]),
            "sales": lambda rows: setattr(self, "sales", [Sale.from_dict(r) for r in rows]),
            "expenses": lambda rows: setattr(self, "expenses", [Expense.from_dict(r) for r in rows]),
            "users": lambda rows: setattr(self, "users", [User.from_dict(r) for r in rows]),
            "logs": lambda rows: self.audit.replace([LogEntry.from_dict(r) for r in rows]),
        }
        try:
            for name, load in loaders.items():
                rows = self._read_json(name)
                load(rows or [])

            saved_settings = self._read_json("settings")
            if saved_settings:
                self.settings.apply_patch(saved_settings)

            saved_session = self._read_json("currentSession")
            self.current_user = SessionUser.from_dict(saved_session) if saved_session else None
            self.session_token_hash = saved_session.get("tokenHash") if saved_session else None
        except (StorageError, ValueError, TypeError):
            logger.exception("Failed to load state from storage")
            self.handle_storage_error()

    def save_to_storage(self) -> bool:
        snapshot = {
            "products": [p.to_dict() for p in self.products],
            "sales": [s.to_dict() for s in self.sales],
            "expenses": [e.to_dict() for e in self.expenses],
            "users": [u.to_dict() for u in self.users],
            "logs": [entry.to_dict() for entry in self.logs],
            "settings": self.settings.to_dict(),
        }
        if self.current_user is not None:
            snapshot["currentSession"] = {**self.current_user.to_dict(), "tokenHash": self.session_token_hash}

        try:
            for name, value in snapshot.items():
                self.storage.set_item(self.keys[name], json.dumps(value, ensure_ascii=False))
        except StorageError:
            logger.exception("Failed to save state to storage")
            self.handle_storage_error()
            return False
        return True

    def save_logs(self) -> bool:
        try:
            payload = json.dumps([entry.to_dict() for entry in self.logs], ensure_ascii=False)
            self.storage.set_item(self.keys["logs"], payload)
        except StorageError:
            logger.exception("Failed to save logs to storage")
            self.handle_storage_error()
            return False
        return True

    def clear_session(self) -> None:
        self.current_user = None
        self.session_token_hash = None
        try:
            self.storage.remove_item(self.keys["currentSession"])
        except StorageError:
            logger.exception("Failed to remove persisted session")
            self.handle_storage_error()

    def handle_storage_error(self) -> None:
        if not self.storage.is_available():
            logger.warning("Storage is unavailable; data will not be persisted.")
        self.settings.read_only_mode = True

    def initialize_default_data(self) -> None:
        if not self.users:
            self.create_default_users()
        if not self.products and self.seed_defaults:
            self.create_sample_products()
        self.save_to_storage()

    def create_default_users(self) -> None:
        now = now_iso()
        self.users = [
            User.from_dict({**row, "active": True, "lastLogin": None, "createdAt": now, "updatedAt": now})
            for row in DEFAULT_USERS
        ]
        self.audit.add(ACTION_SYSTEM, MODULE_SYSTEM, "Default users created during initialization")

    def create_sample_products(self) -> None:
        now = now_iso()
        self.products = [
            Product.from_dict({**row, "createdAt": now, "updatedAt": now})
            for row in SAMPLE_PRODUCTS
        ]
        self.audit.add(ACTION_SYSTEM, MODULE_SYSTEM, "Sample products created during initialization")

    # -- LOGS --

    def add_log(
        self,
        action: str,
        module: str,
        details: str,
        user_id: str | None = None,
        user_name: str | None = None,
    ) -> LogEntry:
        return self.audit.add(action, module, details, user_id=user_id, user_name=user_name)

    def filter_logs(self, filters: dict | None = None) -> list[LogEntry]:
        filters = filters or {}
        return self.audit.filter(
            action=filters.get("action"),
            module=filters.get("module"),
            date=filters.get("date"),
            user_id=filters.get("userId") or filters.get("user_id"),
            search=filters.get("search"),
        )

    def clear_logs(self) -> LogEntry:
        return self.audit.clear()

    # -- PRODUCTS --

    def add_product(self, data: dict) -> Product:
        now = now_iso()
        product = Product.from_dict({**data, "id": generate_id("prod"), "createdAt": now, "updatedAt": now})

        self.products.append(product)
        self.save_to_storage()
        self.audit.add(ACTION_CREATE, MODULE_PRODUCTS, f"Product created: {product.name} (Code: {product.code})")
        return product

    def update_product(self, product_id: str, updates: dict) -> Product | None:
        product = self.get_product(product_id)
        if product is None:
            return None

        product.apply_patch(updates)
        product.updated_at = now_iso()

        self.save_to_storage()
        self.audit.add(ACTION_UPDATE, MODULE_PRODUCTS, f"Product updated: {product.name} (Code: {product.code})")
        return product

    def delete_product(self, product_id: str) -> bool:
        """Historical sales keep their snapshots; nothing cascades."""
        product = self.get_product(product_id)
        if product is None:
            return False

        self.products.remove(product)
        self.save_to_storage()
        self.audit.add(ACTION_DELETE, MODULE_PRODUCTS, f"Product deleted: {product.name} (Code: {product.code})")
        return True

    def get_product(self, product_id: str | None) -> Product | None:
        return next((p for p in self.products if p.id == product_id), None)

    def get_product_by_code(self, code: str | None) -> Product | None:
        if not code:
            return None
        needle = code.lower()
        return next((p for p in self.products if (p.code or "").lower() == needle), None)

    def search_products(self, query: str | None = None) -> list[Product]:
        if not query:
            return self.products
        needle = query.lower()
        return [p for p in self.products if _matches(needle, p.name, p.code, p.category)]

    def get_low_stock_products(self, threshold: int = 10) -> list[Product]:
        return [p for p in self.products if p.stock < threshold]

    def get_total_stock_value(self) -> float:
        return sum_by(self.products, lambda p: p.cost * p.stock)

    # -- SALES --

    def add_sale(self, data: dict) -> Sale | None:
        """
        Record a sale and take its quantities out of stock.

        Totals and cost are computed here from the referenced products;
        `name`/`price` on an item override the product snapshot. Returns None
        without touching any state when an item references an unknown
        product, has a quantity below 1, or asks for more than is in stock.
        """
        raw_items = data.get("items") or []
        if not raw_items:
            return None

        items: list[SaleItem] = []
        demand: dict[str, int] = {}
        cost = 0.0
        for raw in raw_items:
            if isinstance(raw, SaleItem):
                raw = raw.to_dict()
            product = self.get_product(raw.get("productId") or raw.get("product_id"))
            if product is None:
                return None

            quantity = raw.get("quantity")
            if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
                return None

            price = raw.get("price")
            if price is None:
                price = product.price
            items.append(
                SaleItem(
                    product_id=product.id,
                    name=raw.get("name") or product.name,
                    price=price,
                    quantity=quantity,
                    total=price * quantity,
                )
            )
            demand[product.id] = demand.get(product.id, 0) + quantity
            cost += product.cost * quantity

        if any(self.get_product(pid).stock < qty for pid, qty in demand.items()):
            return None

        for pid, qty in demand.items():
            self.get_product(pid).stock -= qty

        session_user_id = self.current_user.id if self.current_user else None
        sale = Sale(
            id=generate_id("sale"),
            client=data.get("client") or "",
            items=items,
            total=sum_by(items, "total"),
            cost=cost,
            date=data.get("date") or date_iso(),
            user_id=data.get("userId") or data.get("user_id") or session_user_id,
            created_at=now_iso(),
        )

        self.sales.insert(0, sale)
        self.save_to_storage()
        self.audit.add(ACTION_CREATE, MODULE_SALES, f"Sale recorded: {sale.client} - Total: {format_currency(sale.total)}")
        return sale

    def delete_sale(self, sale_id: str) -> bool:
        """Remove a sale and put its quantities back into still-existing products."""
        sale = self.get_sale(sale_id)
        if sale is None:
            return False

        for item in sale.items:
            product = self.get_sale_item_product(item)
            if product is not None:
                product.stock += item.quantity

        self.sales.remove(sale)
        self.save_to_storage()
        self.audit.add(ACTION_DELETE, MODULE_SALES, f"Sale deleted: {sale.client} - Total: {format_currency(sale.total)}")
        return True

    def get_sale(self, sale_id: str | None) -> Sale | None:
        return next((s for s in self.sales if s.id == sale_id), None)

    def get_sale_item_product(self, item: SaleItem) -> Product | None:
        """Live join for a sale line; None once the product has been deleted."""
        return self.get_product(item.product_id)

    def search_sales(self, query: str | None = None) -> list[Sale]:
        if not query:
            return self.sales
        needle = query.lower()
        return [s for s in self.sales if _matches(needle, s.client, s.id)]

    def filter_sales_by_date(self, start: str | None = None, end: str | None = None) -> list[Sale]:
        if not start and not end:
            return self.sales
        return filter_by_date_range(start, end, self.sales)

    def get_sales_by_period(self, period: str | None, today: date | None = None) -> list[Sale]:
        if today is None:
            today = _today()

        if period == "today":
            start = today
        elif period == "week":
            start = today - timedelta(days=7)
        elif period == "month":
            start = today.replace(day=1)
        elif period == "year":
            start = today.replace(month=1, day=1)
        else:
            return self.sales

        return filter_by_date_range(start.isoformat(), None, self.sales)

    def get_total_sales(self, sales: list[Sale] | None = None) -> float:
        return sum_by(self.sales if sales is None else sales, "total")

    def get_total_cost(self, sales: list[Sale] | None = None) -> float:
        return sum_by(self.sales if sales is None else sales, "cost")

    def get_total_profit(self, sales: list[Sale] | None = None) -> float:
        return calculate_profit(self.get_total_sales(sales), self.get_total_cost(sales))

    def get_top_selling_products(self, limit: int = 5, sales: list[Sale] | None = None) -> list[dict]:
        """
        Quantity and revenue per product id across sale lines, best sellers
        first. Ties keep the order in which products were first seen.
        """
        totals: dict[str, dict] = {}
        for sale in self.sales if sales is None else sales:
            for item in sale.items:
                row = totals.setdefault(
                    item.product_id,
                    {"id": item.product_id, "name": item.name, "quantity": 0, "revenue": 0},
                )
                row["quantity"] += item.quantity
                row["revenue"] += item.total

        ranked = sorted(totals.values(), key=lambda row: row["quantity"], reverse=True)
        return ranked[:limit]

    # -- EXPENSES --

    def add_expense(self, data: dict) -> Expense:
        expense = Expense.from_dict({**data, "id": generate_id("exp"), "createdAt": now_iso()})
        if not expense.date:
            expense.date = date_iso()

        self.expenses.insert(0, expense)
        self.save_to_storage()
        self.audit.add(
            ACTION_CREATE, MODULE_EXPENSES,
            f"Expense recorded: {expense.description} - {format_currency(expense.value)}",
        )
        return expense

    def update_expense(self, expense_id: str, updates: dict) -> Expense | None:
        expense = self.get_expense(expense_id)
        if expense is None:
            return None

        expense.apply_patch(updates)
        expense.updated_at = now_iso()

        self.save_to_storage()
        self.audit.add(
            ACTION_UPDATE, MODULE_EXPENSES,
            f"Expense updated: {expense.description} - {format_currency(expense.value)}",
        )
        return expense

    def delete_expense(self, expense_id: str) -> bool:
        expense = self.get_expense(expense_id)
        if expense is None:
            return False

        self.expenses.remove(expense)
        self.save_to_storage()
        self.audit.add(
            ACTION_DELETE, MODULE_EXPENSES,
            f"Expense deleted: {expense.description} - {format_currency(expense.value)}",
        )
        return True

    def get_expense(self, expense_id: str | None) -> Expense | None:
        return next((e for e in self.expenses if e.id == expense_id), None)

    def search_expenses(self, query: str | None = None) -> list[Expense]:
        if not query:
            return self.expenses
        needle = query.lower()
        return [e for e in self.expenses if _matches(needle, e.description, e.category)]

    def filter_expenses_by_date(self, start: str | None = None, end: str | None = None) -> list[Expense]:
        if not start and not end:
            return self.expenses
        return filter_by_date_range(start, end, self.expenses)

    def get_total_expenses(self, expenses: list[Expense] | None = None) -> float:
        return sum_by(self.expenses if expenses is None else expenses, "value")

    def get_expenses_by_category(self, expenses: list[Expense] | None = None) -> dict[str, float]:
        grouped: dict[str, float] = {}
        for expense in self.expenses if expenses is None else expenses:
            grouped[expense.category] = grouped.get(expense.category, 0) + expense.value
        return grouped

    # -- USERS --

    def add_user(self, data: dict) -> User:
        now = now_iso()
        user = User.from_dict(
            {**data, "id": generate_id("user"), "active": True, "lastLogin": None, "createdAt": now, "updatedAt": now}
        )

        self.users.append(user)
        self.save_to_storage()
        self.audit.add(ACTION_CREATE, MODULE_USERS, f"User created: {user.username}")
        return user

    def update_user(self, user_id: str, updates: dict) -> User | None:
        """A blank or missing password keeps the current one."""
        user = self.get_user(user_id)
        if user is None:
            return None

        updates = dict(updates)
        if not updates.get("password"):
            updates.pop("password", None)

        user.apply_patch(updates)
        user.updated_at = now_iso()

        if self.current_user is not None and self.current_user.id == user.id:
            self.current_user = SessionUser.from_user(user)

        self.save_to_storage()
        self.audit.add(ACTION_UPDATE, MODULE_USERS, f"User updated: {user.username}")
        return user

    def delete_user(self, user_id: str) -> bool:
        """Refuses to delete the session user or the last remaining user."""
        user = self.get_user(user_id)
        if user is None:
            return False
        if self.current_user is not None and self.current_user.id == user.id:
            return False
        if len(self.users) <= 1:
            return False

        self.users.remove(user)
        self.save_to_storage()
        self.audit.add(ACTION_DELETE, MODULE_USERS, f"User deleted: {user.username}")
        return True

    def get_user(self, user_id: str | None) -> User | None:
        return next((u for u in self.users if u.id == user_id), None)

    def get_user_by_username(self, username: str | None) -> User | None:
        if not username:
            return None
        needle = username.lower()
        return next((u for u in self.users if (u.username or "").lower() == needle), None)

    # -- SETTINGS --

    def update_settings(self, updates: dict) -> Settings:
        changed = self.settings.apply_patch(updates)

        self.save_to_storage()
        self.audit.add(ACTION_UPDATE, MODULE_SYSTEM, f"Settings updated: {', '.join(sorted(changed)) or 'no changes'}")
        return self.settings
