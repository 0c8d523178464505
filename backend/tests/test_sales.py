"""
Sales and stock adjustment.

Recording a sale takes quantities out of stock; deleting it puts them back.
A rejected sale leaves every collection untouched.
"""

from datetime import date

import pytest


def _sale(store, product, quantity=2, **extra):
    return store.add_sale({"client": "Maria", "items": [{"productId": product.id, "quantity": quantity}], **extra})


class TestRecordSale:
    def test_stock_scenario(self, store, product):
        sale = _sale(store, product)

        assert product.stock == 3
        assert sale.total == 40
        assert sale.cost == 20

        assert store.delete_sale(sale.id) is True
        assert product.stock == 5

    def test_line_snapshot(self, store, product):
        sale = _sale(store, product)
        item = sale.items[0]
        assert item.product_id == product.id
        assert item.name == "Caneta Azul"
        assert item.price == 20
        assert item.total == 40

    def test_price_override(self, store, product):
        sale = store.add_sale({"client": "Maria", "items": [{"productId": product.id, "quantity": 1, "price": 18}]})
        assert sale.total == 18
        assert sale.cost == 10

    def test_newest_first_and_attributed(self, store, product):
        from sgpro.services import session_service

        session_service.login(store, "operador", "operador")
        first = _sale(store, product, 1)
        second = _sale(store, product, 1)

        assert store.sales[:2] == [second, first]
        assert second.user_id == store.current_user.id
        assert store.logs[0].module == "sales"
        assert "Kz 20,00" in store.logs[0].details

    def test_date_defaults_to_today(self, store, product):
        assert len(_sale(store, product).date) == 10
        assert _sale(store, product, 1, date="2025-01-02").date == "2025-01-02"

    @pytest.mark.parametrize(
        "items",
        [
            [],
            [{"productId": "missing", "quantity": 1}],
            [{"productId": None, "quantity": 1}],
        ],
    )
    def test_rejects_bad_items(self, store, product, items):
        assert store.add_sale({"client": "X", "items": items}) is None

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "2", True])
    def test_rejects_bad_quantity(self, store, product, quantity):
        assert _sale(store, product, quantity) is None

    def test_insufficient_stock_leaves_state_untouched(self, store, product):
        logs_before = len(store.logs)

        result = store.add_sale({
            "client": "Maria",
            "items": [
                {"productId": product.id, "quantity": 3},
                {"productId": product.id, "quantity": 3},
            ],
        })

        assert result is None
        assert product.stock == 5
        assert store.sales == []
        assert len(store.logs) == logs_before


class TestDeleteSale:
    def test_unknown(self, store):
        assert store.delete_sale("nope") is False

    def test_deleted_product_keeps_history(self, store, product):
        sale = _sale(store, product)
        store.delete_product(product.id)

        assert store.get_sale_item_product(sale.items[0]) is None
        assert store.get_sale(sale.id).items[0].name == "Caneta Azul"
        assert store.delete_sale(sale.id) is True


class TestQueries:
    @pytest.fixture
    def dated(self, store, product):
        product.stock = 100
        return [
            _sale(store, product, 1, date="2025-01-10"),
            _sale(store, product, 2, date="2025-02-15"),
            _sale(store, product, 3, date="2025-03-01"),
        ]

    def test_filter_without_bounds_is_full_collection(self, store, dated):
        assert store.filter_sales_by_date(None, None) is store.sales

    def test_filter_inclusive(self, store, dated):
        result = store.filter_sales_by_date("2025-02-15", "2025-03-01")
        assert {s.date for s in result} == {"2025-02-15", "2025-03-01"}

    def test_by_period(self, store, dated):
        today = date(2025, 3, 5)
        assert len(store.get_sales_by_period("month", today=today)) == 1
        assert len(store.get_sales_by_period("year", today=today)) == 3
        assert len(store.get_sales_by_period("week", today=today)) == 1
        assert len(store.get_sales_by_period("today", today=today)) == 0
        assert store.get_sales_by_period("all") is store.sales

    def test_totals(self, store, dated):
        assert store.get_total_sales() == 120
        assert store.get_total_cost() == 60
        assert store.get_total_profit() == 60
        assert store.get_total_sales([]) == 0

    def test_search(self, store, dated):
        assert len(store.search_sales("maria")) == 3
        assert store.search_sales(dated[0].id) == [dated[0]]

    def test_top_selling(self, store, dated):
        other = store.add_product({"code": "B1", "name": "Lápis", "category": "Papelaria",
                                   "cost": 1, "price": 2, "stock": 50})
        store.add_sale({"client": "João", "items": [{"productId": other.id, "quantity": 4}]})

        top = store.get_top_selling_products()
        assert [row["id"] for row in top] == [dated[0].items[0].product_id, other.id]
        assert top[0]["quantity"] == 6
        assert top[0]["revenue"] == 120
        assert store.get_top_selling_products(1) == top[:1]


class TestTopSellingTies:
    @pytest.fixture
    def other(self, store):
        return store.add_product({"code": "B1", "name": "Lápis", "category": "Papelaria",
                                  "cost": 1, "price": 2, "stock": 50})

    def test_tie_keeps_line_order(self, store, product, other):
        store.add_sale({"client": "Maria", "items": [
            {"productId": product.id, "quantity": 2},
            {"productId": other.id, "quantity": 2},
        ]})

        top = store.get_top_selling_products()

        assert [row["id"] for row in top] == [product.id, other.id]
        assert [row["quantity"] for row in top] == [2, 2]

    def test_tie_follows_collection_order(self, store, product, other):
        # Sales are kept newest first, so the later sale is seen first.
        _sale(store, product, 2)
        _sale(store, other, 2)

        top = store.get_top_selling_products()

        assert [row["id"] for row in top] == [other.id, product.id]
        assert store.get_top_selling_products(1)[0]["id"] == other.id
