from __future__ import annotations

from calendar import monthrange
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional

DAILY = "daily"
WEEKLY = "weekly"
MONTHLY = "monthly"
YEARLY = "yearly"
SUPPORTED_INTERVALS = {DAILY, WEEKLY, MONTHLY, YEARLY}
DEFAULT_INTERVAL = MONTHLY

UNORDERED_POSITION = 999


@dataclass(frozen=True)
class Transaction:
    id: str
    amount: Decimal
    currency: str
    date: date
    category_id: Optional[str] = None
    is_recurring: bool = False
    recurrence_interval: Optional[str] = None
    stop_date: Optional[date] = None
    description: str = ""
    is_projection: bool = False


@dataclass(frozen=True)
class IncomeSource:
    id: str
    amount: Decimal
    currency: str
    start_date: date
    is_recurring: bool = True
    recurrence_interval: Optional[str] = None
    end_date: Optional[date] = None
    description: str = ""


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    icon: str = "circle"
    color: str = "bg-gray-100"
    display_order: Optional[int] = None


@dataclass(frozen=True)
class CategoryBudget:
    id: str
    category_id: str
    amount: Decimal
    currency: str
    month: str


def resolve_interval(value: Optional[str]) -> str:
    """Return the normalized recurrence interval, defaulting to monthly."""
    if value is None or not value.strip():
        return DEFAULT_INTERVAL
    normalized = value.strip().lower()
    if normalized not in SUPPORTED_INTERVALS:
        raise ValueError("Only daily, weekly, monthly, or yearly intervals are supported.")
    return normalized


def as_date(value: date | datetime) -> date:
    # Time of day carries no meaning for records, only the calendar date does.
    if isinstance(value, datetime):
        return value.date()
    return value


def month_start(value: date | datetime) -> date:
    value = as_date(value)
    return date(value.year, value.month, 1)


def month_end(value: date | datetime) -> date:
    value = as_date(value)
    return date(value.year, value.month, monthrange(value.year, value.month)[1])


def add_months(value: date, months: int) -> date:
    total_month = value.month - 1 + months
    year = value.year + total_month // 12
    month = total_month % 12 + 1
    day = min(value.day, monthrange(year, month)[1])
    return date(year, month, day)


def same_month(left: date, right: date) -> bool:
    return left.year == right.year and left.month == right.month


def month_key(value: date | datetime) -> str:
    """Budget and chart key for a calendar month, e.g. ``"Jan 2025"``."""
    return as_date(value).strftime("%b %Y")


def parse_month_key(key: str) -> date:
    try:
        return datetime.strptime(key.strip(), "%b %Y").date()
    except ValueError as exc:
        raise ValueError("Month must be formatted like 'Jan 2025'.") from exc


def sort_categories(categories: Iterable[Category]) -> List[Category]:
    return sorted(
        categories,
        key=lambda category: (
            category.display_order is None,
            category.display_order if category.display_order is not None else 0,
            category.name.lower(),
        ),
    )


def coerce_amount(amount: Decimal | int | float | str) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))
