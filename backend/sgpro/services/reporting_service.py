# Overview: Read-side report aggregation over the Store's collections.

"""
Reports never mutate the Store. Date bounds are inclusive ISO calendar days
and either may be omitted. Month windows are computed relative to `today`
(injectable for deterministic output).
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from ..utils import calculate_profit, get_last_months, round_half_away, sum_by

if TYPE_CHECKING:
    from ..store import Store


FINANCIAL_MONTHS = 12
PROFIT_MONTHS = 6
SALES_REPORT_TOP_PRODUCTS = 10


class ReportError(Exception):
    """Raised when report parameters are unusable."""
    pass


def check_range(start: str | None, end: str | None) -> None:
    if start and end and start > end:
        raise ReportError("start must not be after end")


def _margin_pct(revenue: float, cost: float) -> float:
    if not revenue:
        return 0
    return round_half_away((revenue - cost) / revenue * 100, 1)


def financial_report(
    store: "Store",
    start: str | None = None,
    end: str | None = None,
    today: date | None = None,
) -> dict:
    check_range(start, end)
    sales = store.filter_sales_by_date(start, end)
    expenses = store.filter_expenses_by_date(start, end)

    total_sales = store.get_total_sales(sales)
    total_cost = store.get_total_cost(sales)
    gross_profit = calculate_profit(total_sales, total_cost)
    total_expenses = store.get_total_expenses(expenses)
    net_profit = gross_profit - total_expenses

    # Every trailing month is present, idle months stay at zero.
    buckets = {
        m["key"]: {"key": m["key"], "label": m["label"], "sales": 0, "expenses": 0, "profit": 0}
        for m in get_last_months(FINANCIAL_MONTHS, today=today)
    }

    for sale in sales:
        bucket = buckets.get((sale.date or "")[:7])
        if bucket is not None:
            bucket["sales"] += sale.total
            bucket["profit"] += calculate_profit(sale.total, sale.cost)

    for expense in expenses:
        bucket = buckets.get((expense.date or "")[:7])
        if bucket is not None:
            bucket["expenses"] += expense.value
            bucket["profit"] -= expense.value

    return {
        "totalSales": total_sales,
        "totalCost": total_cost,
        "grossProfit": gross_profit,
        "totalExpenses": total_expenses,
        "netProfit": net_profit,
        "expensesByCategory": store.get_expenses_by_category(expenses),
        "salesByMonth": list(buckets.values()),
        "salesCount": len(sales),
        "expensesCount": len(expenses),
        "period": {"startDate": start, "endDate": end},
    }


def stock_report(store: "Store") -> dict:
    products = store.products
    threshold = store.settings.low_stock_threshold

    total_value = sum_by(products, lambda p: p.cost * p.stock)
    total_retail_value = sum_by(products, lambda p: p.price * p.stock)

    # A product with zero stock is both low-stock and out-of-stock.
    low_stock = [p for p in products if p.stock < threshold]
    out_of_stock = [p for p in products if p.stock == 0]

    value_by_category: dict[str, dict] = {}
    for p in products:
        row = value_by_category.setdefault(p.category, {"count": 0, "value": 0})
        row["count"] += p.stock
        row["value"] += p.cost * p.stock

    return {
        "totalProducts": len(products),
        "totalItems": sum(p.stock for p in products),
        "totalValue": total_value,
        "totalRetailValue": total_retail_value,
        "potentialProfit": calculate_profit(total_retail_value, total_value),
        "lowStock": len(low_stock),
        "outOfStock": len(out_of_stock),
        "lowStockProducts": [p.to_dict() for p in low_stock],
        "outOfStockProducts": [p.to_dict() for p in out_of_stock],
        "valueByCategory": value_by_category,
        "lowStockThreshold": threshold,
    }


def sales_report(store: "Store", start: str | None = None, end: str | None = None) -> dict:
    check_range(start, end)
    sales = store.filter_sales_by_date(start, end)
    total_sales = store.get_total_sales(sales)
    total_cost = store.get_total_cost(sales)

    return {
        "count": len(sales),
        "totalSales": total_sales,
        "totalCost": total_cost,
        "totalProfit": calculate_profit(total_sales, total_cost),
        "averageTicket": total_sales / len(sales) if sales else 0,
        "topProducts": store.get_top_selling_products(SALES_REPORT_TOP_PRODUCTS, sales=sales),
        "period": {"startDate": start, "endDate": end},
    }


def profit_report(
    store: "Store",
    start: str | None = None,
    end: str | None = None,
    today: date | None = None,
) -> dict:
    check_range(start, end)
    sales = store.filter_sales_by_date(start, end)
    total_sales = store.get_total_sales(sales)
    total_cost = store.get_total_cost(sales)

    profit_by_month = []
    for month in get_last_months(PROFIT_MONTHS, today=today):
        month_sales = [s for s in sales if (s.date or "")[:7] == month["key"]]
        revenue = store.get_total_sales(month_sales)
        cost = store.get_total_cost(month_sales)
        profit_by_month.append(
            {
                "key": month["key"],
                "label": month["label"],
                "revenue": revenue,
                "cost": cost,
                "profit": calculate_profit(revenue, cost),
                "margin": _margin_pct(revenue, cost),
            }
        )

    return {
        "totalSales": total_sales,
        "totalCost": total_cost,
        "totalProfit": calculate_profit(total_sales, total_cost),
        "margin": _margin_pct(total_sales, total_cost),
        "profitByMonth": profit_by_month,
        "period": {"startDate": start, "endDate": end},
    }


DASHBOARD_RECENT_SALES = 5


def dashboard_summary(store: "Store") -> dict:
    """Headline figures over the full collections plus the most recent sales."""
    total_sales = store.get_total_sales()
    gross_profit = store.get_total_profit()
    total_expenses = store.get_total_expenses()

    return {
        "totalSales": total_sales,
        "salesCount": len(store.sales),
        "grossProfit": gross_profit,
        "margin": _margin_pct(total_sales, store.get_total_cost()),
        "totalExpenses": total_expenses,
        "expensesCount": len(store.expenses),
        "netProfit": gross_profit - total_expenses,
        "productCount": len(store.products),
        "lowStockCount": len(store.get_low_stock_products(store.settings.low_stock_threshold)),
        "recentSales": [s.to_dict() for s in store.sales[:DASHBOARD_RECENT_SALES]],
    }
