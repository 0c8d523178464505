"""
Store CRUD, lookups and persistence.

Covers:
- initialization and default data
- products / expenses / users / settings commands
- every mutation persists and leaves one audit entry
"""

import json

import pytest

from sgpro.storage import MemoryStorage
from sgpro.store import Store, storage_keys


def _audit_count(store):
    return len(store.logs)


# =============================================================================
# INITIALIZATION
# =============================================================================


class TestInitialization:
    def test_default_users_created(self, store):
        usernames = {u.username for u in store.users}
        assert usernames == {"admin", "operador", "gerente"}
        assert store.get_user_by_username("ADMIN").profile == "admin"

    def test_sample_products_only_when_seeding(self, storage):
        assert Store(storage, seed_defaults=False).init().products == []
        assert len(Store(MemoryStorage()).init().products) == 5

    def test_state_survives_reload(self, store, storage, product):
        reloaded = Store(storage, seed_defaults=False).init()
        assert reloaded.get_product(product.id) == product
        assert len(reloaded.users) == 3
        assert [e.id for e in reloaded.logs] == [e.id for e in store.logs]

    def test_keys_are_prefixed(self):
        keys = storage_keys("test_")
        assert keys["products"] == "test_products"
        assert keys["currentSession"] == "test_currentSession"

    def test_persisted_json_uses_camel_case(self, store, storage, product):
        rows = json.loads(storage.get_item("sgpro_products"))
        assert rows[0]["createdAt"] == product.created_at
        assert "created_at" not in rows[0]


# =============================================================================
# PRODUCTS
# =============================================================================


class TestProducts:
    def test_add_product_assigns_id_and_timestamps(self, store, product):
        assert product.id.startswith("prod_")
        assert product.created_at and product.updated_at
        assert store.logs[0].action == "create"
        assert store.logs[0].module == "products"
        assert "A1" in store.logs[0].details

    def test_update_keeps_id_and_created_at(self, store, product):
        original_id, created = product.id, product.created_at
        product.updated_at = "2000-01-01T00:00:00.000Z"

        updated = store.update_product(product.id, {"id": "hijack", "createdAt": "x", "price": 25})

        assert updated.id == original_id
        assert updated.created_at == created
        assert updated.updated_at != "2000-01-01T00:00:00.000Z"
        assert updated.price == 25

    def test_update_unknown_returns_none(self, store):
        before = _audit_count(store)
        assert store.update_product("missing", {"price": 1}) is None
        assert _audit_count(store) == before

    def test_delete(self, store, product):
        assert store.delete_product(product.id) is True
        assert store.get_product(product.id) is None
        assert store.delete_product(product.id) is False

    def test_lookup_and_search(self, store, product):
        assert store.get_product_by_code("a1") is product
        assert store.search_products("caneta") == [product]
        assert store.search_products("papel") == [product]
        assert store.search_products("") is store.products
        assert store.search_products("zzz") == []

    def test_low_stock_and_value(self, store, product):
        assert store.get_low_stock_products() == [product]
        assert store.get_low_stock_products(5) == []
        assert store.get_total_stock_value() == 50


# =============================================================================
# EXPENSES
# =============================================================================


class TestExpenses:
    def test_crud(self, store):
        expense = store.add_expense({"description": "Aluguel", "category": "Fixas", "value": 800, "date": "2025-03-01"})
        assert expense.id.startswith("exp_")
        assert store.logs[0].module == "expenses"

        store.update_expense(expense.id, {"value": 850})
        assert store.get_expense(expense.id).value == 850

        assert store.delete_expense(expense.id) is True
        assert store.get_expense(expense.id) is None
        assert store.delete_expense(expense.id) is False

    def test_date_defaults_to_today(self, store):
        expense = store.add_expense({"description": "Luz", "category": "Fixas", "value": 50})
        assert len(expense.date) == 10

    def test_totals_and_categories(self, store):
        store.add_expense({"description": "Aluguel", "category": "Fixas", "value": 800, "date": "2025-03-01"})
        store.add_expense({"description": "Luz", "category": "Fixas", "value": 100, "date": "2025-04-01"})
        store.add_expense({"description": "Anúncio", "category": "Marketing", "value": 50, "date": "2025-04-02"})

        assert store.get_total_expenses() == 950
        assert store.get_expenses_by_category() == {"Fixas": 900, "Marketing": 50}
        april = store.filter_expenses_by_date("2025-04-01", "2025-04-30")
        assert store.get_total_expenses(april) == 150
        assert store.search_expenses("marketing")[0].description == "Anúncio"

    def test_explicit_empty_list_is_not_full_collection(self, store):
        store.add_expense({"description": "Luz", "category": "Fixas", "value": 100})
        assert store.get_total_expenses([]) == 0


# =============================================================================
# USERS
# =============================================================================


class TestUsers:
    def test_add_user(self, store):
        user = store.add_user({"username": "ana", "password": "x", "fullName": "Ana", "profile": "operator"})
        assert user.active is True
        assert user.last_login is None
        assert store.get_user_by_username("Ana") is user

    def test_blank_password_keeps_current(self, store):
        user = store.get_user_by_username("operador")
        store.update_user(user.id, {"password": "", "fullName": "Operador Caixa"})
        assert user.password == "operador"
        assert user.full_name == "Operador Caixa"

    def test_editing_session_user_refreshes_snapshot(self, store):
        from sgpro.services import session_service

        session_service.login(store, "gerente", "gerente")
        store.update_user(store.current_user.id, {"profile": "admin"})

        assert store.current_user.profile == "admin"
        assert store.current_user.permissions.users.delete

    def test_cannot_delete_session_user(self, store):
        from sgpro.services import session_service

        session_service.login(store, "admin", "admin")
        assert store.delete_user(store.current_user.id) is False

    def test_cannot_delete_last_user(self, store):
        ids = [u.id for u in store.users]
        assert store.delete_user(ids[0]) is True
        assert store.delete_user(ids[1]) is True
        assert store.delete_user(ids[2]) is False
        assert len(store.users) == 1


# =============================================================================
# SETTINGS
# =============================================================================


def test_update_settings_merges_and_logs(store):
    settings = store.update_settings({"companyName": "Loja Central", "lowStockThreshold": 3})
    assert settings.company_name == "Loja Central"
    assert settings.low_stock_threshold == 3
    assert settings.currency == "AOA"
    assert store.logs[0].module == "system"


@pytest.mark.parametrize("name", ["add_product", "add_expense", "add_user"])
def test_each_create_leaves_one_audit_entry(store, name):
    payloads = {
        "add_product": {"code": "X", "name": "X", "cost": 1, "price": 2, "stock": 1},
        "add_expense": {"description": "X", "category": "Y", "value": 1},
        "add_user": {"username": "x", "password": "x", "fullName": "X", "profile": "operator"},
    }
    before = _audit_count(store)
    getattr(store, name)(payloads[name])
    assert _audit_count(store) == before + 1
