from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Iterable

from savings_projection.currency_conversion import (
    BASE_CURRENCY,
    StaticRateProvider,
    convert_amount,
)
from savings_projection.records import (
    DAILY,
    MONTHLY,
    WEEKLY,
    YEARLY,
    IncomeSource,
    as_date,
    month_end,
    month_start,
    resolve_interval,
    same_month,
)

ZERO = Decimal("0")
DAYS_PER_MONTH = Decimal("30")
WEEKS_PER_MONTH = Decimal("4.3")


def is_active_in_month(source: IncomeSource, month: date | datetime) -> bool:
    first_day = month_start(month)
    last_day = month_end(month)
    if as_date(source.start_date) > last_day:
        return False
    if source.end_date is not None and as_date(source.end_date) < first_day:
        return False
    return True


def monthly_income_for(
    income_sources: Iterable[IncomeSource],
    month: date | datetime,
    target_currency: str = BASE_CURRENCY,
    rate_provider: StaticRateProvider | None = None,
) -> Decimal:
    """Sum the monthly-recurring income sources active during ``month``.

    One-time income and sources recurring on any other interval are not
    part of this figure.
    """
    total = ZERO
    for source in income_sources:
        if not source.is_recurring:
            continue
        if resolve_interval(source.recurrence_interval) != MONTHLY:
            continue
        if not is_active_in_month(source, month):
            continue
        total += convert_amount(
            source.amount, source.currency, target_currency, rate_provider=rate_provider
        )
    return total


def current_monthly_income(
    income_sources: Iterable[IncomeSource],
    today: date | datetime,
    target_currency: str = BASE_CURRENCY,
    rate_provider: StaticRateProvider | None = None,
) -> Decimal:
    """Monthly-equivalent income for the month containing ``today``.

    Daily income counts 30 times, weekly income 4.3 times, yearly income
    only in its anniversary month and one-time income only in the month
    it was received.
    """
    today = as_date(today)
    total = ZERO
    for source in income_sources:
        start_date = as_date(source.start_date)
        if start_date > today:
            continue
        if source.end_date is not None and as_date(source.end_date) < today:
            continue

        amount = convert_amount(
            source.amount, source.currency, target_currency, rate_provider=rate_provider
        )
        if not source.is_recurring:
            if same_month(start_date, today):
                total += amount
            continue

        interval = resolve_interval(source.recurrence_interval)
        if interval == MONTHLY:
            total += amount
        elif interval == DAILY:
            total += amount * DAYS_PER_MONTH
        elif interval == WEEKLY:
            total += amount * WEEKS_PER_MONTH
        elif interval == YEARLY and start_date.month == today.month:
            total += amount
    return total
