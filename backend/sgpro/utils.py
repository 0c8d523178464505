# Overview: Formatting and derivation helpers shared by the store, reports, and API layer.

from __future__ import annotations

import math
import re
import secrets
import string
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Iterable

from .time_utils import parse_iso_datetime, today as _today


MONTH_NAMES = [
    "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
]

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_ID_ALPHABET = string.digits + string.ascii_lowercase


# -- NUMBERS / MONEY --

def _is_missing_number(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return True
    try:
        return math.isnan(float(value))
    except (TypeError, ValueError):
        return True


def round_half_away(value: float, digits: int = 1) -> float:
    """Round to `digits` decimals, ties away from zero (2.25 -> 2.3, -2.25 -> -2.3)."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def format_number(value: Any) -> str:
    """1234.5 -> '1.234,50' (pt grouping, two decimals)."""
    if _is_missing_number(value):
        return "0"
    text = f"{float(value):,.2f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def format_currency(value: Any, symbol: str = "Kz") -> str:
    if _is_missing_number(value):
        return f"{symbol} 0,00"
    amount = float(value)
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol} {format_number(abs(amount))}"


def calculate_margin(cost: float, price: float) -> float:
    """
    Markup over cost as a percentage, one decimal.

    Returns 0 when cost or price is zero/missing.
    """
    if not cost or not price:
        return 0
    margin = ((price - cost) / cost) * 100
    return round_half_away(margin, 1)


def calculate_profit(total: float, cost: float) -> float:
    return total - cost


# -- DATES --

def _coerce_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return parse_iso_datetime(value)
        except ValueError:
            return None
    return None


def format_date(value: Any) -> str:
    """ISO date/datetime -> 'dd/mm/yyyy'. Unparseable strings are returned unchanged."""
    if not value or value == "-":
        return "-"
    dt = _coerce_datetime(value)
    if dt is None:
        return value if isinstance(value, str) else "-"
    return dt.strftime("%d/%m/%Y")


def format_datetime(value: Any) -> str:
    if not value or value == "-":
        return "-"
    dt = _coerce_datetime(value)
    if dt is None:
        return value if isinstance(value, str) else "-"
    return dt.strftime("%d/%m/%Y %H:%M:%S")


def get_month_name(month: int) -> str:
    """month is 1-12."""
    if month < 1 or month > 12:
        return "Mês Inválido"
    return MONTH_NAMES[month - 1]


def get_month_short_name(month: int) -> str:
    if month < 1 or month > 12:
        return "---"
    return MONTH_NAMES[month - 1][:3]


def get_last_months(count: int = 6, today: date | None = None) -> list[dict]:
    """
    The trailing `count` calendar months ending with the current one, oldest first.

    Each entry: {"year", "month" (1-12), "key" ("YYYY-MM"), "label" ("Jan/25"),
    "full_label" ("Janeiro/2025")}.
    """
    if today is None:
        today = _today()

    months = []
    for back in range(count - 1, -1, -1):
        index = today.year * 12 + (today.month - 1) - back
        year, month = divmod(index, 12)
        month += 1
        months.append(
            {
                "year": year,
                "month": month,
                "key": f"{year:04d}-{month:02d}",
                "label": f"{get_month_short_name(month)}/{str(year)[2:]}",
                "full_label": f"{get_month_name(month)}/{year}",
            }
        )
    return months


# -- IDENTIFIERS --

def _base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_ID_ALPHABET[rem])
    return "".join(reversed(digits))


def generate_id(prefix: str | None = None) -> str:
    """Time-ordered base36 id with a random suffix, e.g. 'prod_lq3k9x2a7f1c'."""
    stamp = _base36(int(datetime.now().timestamp() * 1000))
    random_part = "".join(secrets.choice(_ID_ALPHABET) for _ in range(6))
    ident = stamp + random_part
    return f"{prefix}_{ident}" if prefix else ident


# -- VALIDATION --

def validate_email(email: str | None) -> bool:
    return bool(email) and EMAIL_RE.match(email) is not None


def validate_date(value: str | None) -> bool:
    if not value:
        return False
    try:
        return parse_iso_datetime(value) is not None
    except ValueError:
        return False


# -- COLLECTIONS --
# Helpers accept dataclass instances or plain dicts.

def _field(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def filter_by_date_range(start: str | None, end: str | None, data: Iterable, field: str = "date") -> list:
    """Inclusive ISO-day range; a missing bound does not restrict."""
    filtered = list(data)
    if start:
        filtered = [item for item in filtered if (_field(item, field) or "") >= start]
    if end:
        filtered = [item for item in filtered if (_field(item, field) or "") <= end]
    return filtered


def _as_float(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(number) else number


def sum_by(data: Iterable, field: str | Callable[[Any], Any]) -> float:
    getter = field if callable(field) else (lambda item: _field(item, field))
    return sum(_as_float(getter(item)) for item in data)


