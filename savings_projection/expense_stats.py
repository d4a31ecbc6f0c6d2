from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, Optional

from savings_projection.currency_conversion import (
    BASE_CURRENCY,
    StaticRateProvider,
    convert_amount,
)
from savings_projection.records import Transaction, as_date

ZERO = Decimal("0")
HUNDRED = Decimal("100")
TREND_MINIMUM_EXPENSES = 7


@dataclass(frozen=True)
class SpendingAverages:
    daily: Decimal
    weekly: Decimal
    monthly: Decimal
    days: int


@dataclass(frozen=True)
class ExpensiveDay:
    date: Optional[date]
    total: Decimal


@dataclass(frozen=True)
class SpendingTrend:
    change: int
    is_positive: bool


def spending_averages(
    expenses: Iterable[Transaction],
    target_currency: str = BASE_CURRENCY,
    rate_provider: StaticRateProvider | None = None,
) -> SpendingAverages:
    expenses = list(expenses)
    if not expenses:
        return SpendingAverages(daily=ZERO, weekly=ZERO, monthly=ZERO, days=1)

    dates = [as_date(expense.date) for expense in expenses]
    days = max(1, (max(dates) - min(dates)).days)
    daily = _converted_total(expenses, target_currency, rate_provider) / days
    return SpendingAverages(daily=daily, weekly=daily * 7, monthly=daily * 30, days=days)


def biggest_expense(
    expenses: Iterable[Transaction],
    target_currency: str = BASE_CURRENCY,
    rate_provider: StaticRateProvider | None = None,
) -> Optional[Transaction]:
    biggest = None
    biggest_amount = ZERO
    for expense in expenses:
        amount = convert_amount(
            expense.amount, expense.currency, target_currency, rate_provider=rate_provider
        )
        if biggest is None or amount > biggest_amount:
            biggest, biggest_amount = expense, amount
    return biggest


def most_expensive_day(
    expenses: Iterable[Transaction],
    target_currency: str = BASE_CURRENCY,
    rate_provider: StaticRateProvider | None = None,
) -> ExpensiveDay:
    daily_totals: Dict[date, Decimal] = {}
    for expense in expenses:
        day = as_date(expense.date)
        daily_totals[day] = daily_totals.get(day, ZERO) + convert_amount(
            expense.amount, expense.currency, target_currency, rate_provider=rate_provider
        )
    if not daily_totals:
        return ExpensiveDay(date=None, total=ZERO)
    day = max(daily_totals, key=lambda key: (daily_totals[key], -key.toordinal()))
    return ExpensiveDay(date=day, total=daily_totals[day])


def spending_trend(
    expenses: Iterable[Transaction],
    today: date | datetime,
    target_currency: str = BASE_CURRENCY,
    rate_provider: StaticRateProvider | None = None,
) -> SpendingTrend:
    """Compare spend after a split point against spend on or before it.

    The split point lies half as many days before ``today`` as there are
    expenses. Lower recent spending counts as positive.
    """
    expenses = list(expenses)
    if len(expenses) < TREND_MINIMUM_EXPENSES:
        return SpendingTrend(change=0, is_positive=False)

    halfway = as_date(today) - timedelta(days=len(expenses) // 2)
    recent = [expense for expense in expenses if as_date(expense.date) > halfway]
    older = [expense for expense in expenses if as_date(expense.date) <= halfway]
    older_total = _converted_total(older, target_currency, rate_provider)
    if not older or older_total == ZERO:
        return SpendingTrend(change=0, is_positive=False)

    recent_total = _converted_total(recent, target_currency, rate_provider)
    trend = (recent_total - older_total) / older_total * HUNDRED
    change = int(abs(trend).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return SpendingTrend(change=change, is_positive=trend <= ZERO)


def _converted_total(
    expenses: Iterable[Transaction],
    target_currency: str,
    rate_provider: Optional[StaticRateProvider],
) -> Decimal:
    total = ZERO
    for expense in expenses:
        total += convert_amount(
            expense.amount, expense.currency, target_currency, rate_provider=rate_provider
        )
    return total
