"""Formatting, margin, date and collection helpers."""

from datetime import date

import pytest

from sgpro.entities import Sale
from sgpro.utils import (
    calculate_margin,
    calculate_profit,
    filter_by_date_range,
    format_currency,
    format_date,
    format_datetime,
    format_number,
    generate_id,
    get_last_months,
    get_month_name,
    round_half_away,
    sum_by,
    validate_date,
    validate_email,
)


class TestMargin:
    def test_zero_cost_is_guarded(self):
        assert calculate_margin(0, 100) == 0

    def test_markup_over_cost(self):
        assert calculate_margin(50, 75) == 50.0

    def test_zero_price(self):
        assert calculate_margin(10, 0) == 0

    def test_rounds_to_one_decimal(self):
        assert calculate_margin(3, 4) == 33.3

    @pytest.mark.parametrize("value,expected", [(2.25, 2.3), (-2.25, -2.3), (2.24, 2.2), (0.05, 0.1)])
    def test_round_half_away_from_zero(self, value, expected):
        assert round_half_away(value, 1) == expected


class TestFormatting:
    def test_format_number_groups_thousands(self):
        assert format_number(1234.5) == "1.234,50"
        assert format_number(1234567.891) == "1.234.567,89"

    def test_format_currency(self):
        assert format_currency(1500) == "Kz 1.500,00"
        assert format_currency(-3.5) == "-Kz 3,50"

    @pytest.mark.parametrize("value", [None, float("nan"), "abc"])
    def test_format_currency_missing_value(self, value):
        assert format_currency(value) == "Kz 0,00"

    def test_format_date(self):
        assert format_date("2025-03-14") == "14/03/2025"
        assert format_date("2025-03-14T10:20:30.000Z") == "14/03/2025"
        assert format_date("") == "-"
        assert format_date("ontem") == "ontem"

    def test_format_datetime(self):
        assert format_datetime("2025-03-14T10:20:30.000Z") == "14/03/2025 10:20:30"
        assert format_datetime(None) == "-"

    def test_month_names(self):
        assert get_month_name(1) == "Janeiro"
        assert get_month_name(12) == "Dezembro"
        assert get_month_name(13) == "Mês Inválido"


class TestLastMonths:
    def test_trailing_window_crosses_year(self):
        months = get_last_months(3, today=date(2025, 2, 10))
        assert [m["key"] for m in months] == ["2024-12", "2025-01", "2025-02"]
        assert months[0]["label"] == "Dez/24"
        assert months[-1]["full_label"] == "Fevereiro/2025"

    def test_count(self):
        assert len(get_last_months(12, today=date(2025, 6, 1))) == 12


class TestValidators:
    def test_email(self):
        assert validate_email("ana@empresa.ao")
        assert not validate_email("ana@empresa")
        assert not validate_email("")

    def test_date(self):
        assert validate_date("2025-03-14")
        assert not validate_date("14/03/2025")
        assert not validate_date(None)


class TestCollections:
    ROWS = [
        {"date": "2025-01-05", "category": "a", "value": 10},
        {"date": "2025-01-20", "category": "b", "value": 30},
        {"date": "2025-02-01", "category": "a", "value": 20},
    ]

    def test_filter_by_date_range_inclusive(self):
        result = filter_by_date_range("2025-01-20", "2025-02-01", self.ROWS)
        assert [r["value"] for r in result] == [30, 20]

    def test_filter_by_date_range_open_bounds(self):
        assert len(filter_by_date_range(None, None, self.ROWS)) == 3
        assert len(filter_by_date_range(None, "2025-01-05", self.ROWS)) == 1

    def test_sum_by(self):
        assert sum_by(self.ROWS, "value") == 60
        assert sum_by([], "value") == 0

    def test_helpers_accept_records(self):
        sales = [Sale(id="s1", total=5, date="2025-01-01"), Sale(id="s2", total=7, date="2025-03-01")]
        assert sum_by(sales, "total") == 12
        assert filter_by_date_range("2025-02-01", None, sales) == [sales[1]]


def test_generate_id_prefix_and_uniqueness():
    ids = {generate_id("prod") for _ in range(50)}
    assert len(ids) == 50
    assert all(i.startswith("prod_") for i in ids)


def test_profit():
    assert calculate_profit(120, 80) == 40
    assert calculate_profit(50, 80) == -30
