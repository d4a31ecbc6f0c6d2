from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from savings_projection.currency_conversion import (
    BASE_CURRENCY,
    StaticRateProvider,
    convert_amount,
)
from savings_projection.income_projection import monthly_income_for
from savings_projection.records import (
    DAILY,
    WEEKLY,
    IncomeSource,
    Transaction,
    add_months,
    as_date,
    month_key,
    month_start,
    resolve_interval,
    same_month,
)
from savings_projection.recurring_projection import occurrences_with_anchor

ZERO = Decimal("0")
TRAILING_MONTHS = 3
MONTHLY_FACTORS = {
    DAILY: Decimal("30"),
    WEEKLY: Decimal("4.3"),
}


@dataclass(frozen=True)
class MonthlyTotal:
    month: str
    month_start: date
    income: Decimal
    expenses: Decimal
    savings: Decimal
    is_projected: bool = False


def aggregate_monthly_totals(
    expenses: Iterable[Transaction],
    income_sources: Iterable[IncomeSource],
    today: date | datetime,
    months_back: int = 6,
    months_forward: int = 3,
    target_currency: str = BASE_CURRENCY,
    rate_provider: StaticRateProvider | None = None,
) -> List[MonthlyTotal]:
    """Build one income/expense/savings entry per month, oldest first.

    Past and current months only count stored expenses. Future months count
    the projected recurring expenses plus the average non-recurring spend of
    the three months before the current one.
    """
    if months_back < 0 or months_forward < 0:
        raise ValueError("months_back and months_forward must not be negative.")

    today = as_date(today)
    stored = [expense for expense in expenses if not expense.is_projection]
    sources = list(income_sources)
    current_month = month_start(today)

    totals: List[MonthlyTotal] = []
    for offset in range(-months_back, 1):
        month = add_months(current_month, offset)
        totals.append(
            _monthly_total(
                month,
                income=monthly_income_for(
                    sources, month, target_currency, rate_provider=rate_provider
                ),
                expenses=_recorded_spend(
                    stored, month, target_currency, rate_provider
                ),
            )
        )

    if months_forward:
        estimate = trailing_non_recurring_average(
            stored, today, target_currency, rate_provider=rate_provider
        )
        recurring = [expense for expense in stored if expense.is_recurring]
        for offset in range(1, months_forward + 1):
            month = add_months(current_month, offset)
            projected_spend = estimate + _projected_recurring_spend(
                recurring, month, today, target_currency, rate_provider
            )
            totals.append(
                _monthly_total(
                    month,
                    income=monthly_income_for(
                        sources, month, target_currency, rate_provider=rate_provider
                    ),
                    expenses=projected_spend,
                    is_projected=True,
                )
            )
    return totals


def trailing_non_recurring_average(
    expenses: Iterable[Transaction],
    today: date | datetime,
    target_currency: str = BASE_CURRENCY,
    rate_provider: StaticRateProvider | None = None,
) -> Decimal:
    stored = [expense for expense in expenses if not expense.is_projection]
    current_month = month_start(as_date(today))
    total = ZERO
    for offset in range(1, TRAILING_MONTHS + 1):
        month = add_months(current_month, -offset)
        actual = _recorded_spend(stored, month, target_currency, rate_provider)
        recurring = _recorded_spend(
            [expense for expense in stored if expense.is_recurring],
            month,
            target_currency,
            rate_provider,
        )
        total += actual - recurring
    return total / TRAILING_MONTHS


def monthly_recurring_amount(
    expense: Transaction,
    month: date,
    today: date | datetime,
    target_currency: str = BASE_CURRENCY,
    rate_provider: StaticRateProvider | None = None,
) -> Decimal:
    """Monthly-equivalent cost of a recurring expense occurring in ``month``."""
    if not expense.is_recurring:
        return ZERO
    if not any(
        same_month(occurrence, month)
        for occurrence in occurrences_with_anchor(expense, today)
    ):
        return ZERO
    factor = MONTHLY_FACTORS.get(resolve_interval(expense.recurrence_interval), Decimal("1"))
    return convert_amount(
        expense.amount, expense.currency, target_currency, rate_provider=rate_provider
    ) * factor


def find_month(totals: Sequence[MonthlyTotal], day: date | datetime) -> Optional[MonthlyTotal]:
    wanted = month_start(day)
    for total in totals:
        if total.month_start == wanted:
            return total
    return None


def _monthly_total(
    month: date,
    income: Decimal,
    expenses: Decimal,
    is_projected: bool = False,
) -> MonthlyTotal:
    return MonthlyTotal(
        month=month_key(month),
        month_start=month,
        income=income,
        expenses=expenses,
        savings=income - expenses,
        is_projected=is_projected,
    )


def _recorded_spend(
    expenses: Iterable[Transaction],
    month: date,
    target_currency: str,
    rate_provider: Optional[StaticRateProvider],
) -> Decimal:
    total = ZERO
    for expense in expenses:
        if same_month(as_date(expense.date), month):
            total += convert_amount(
                expense.amount, expense.currency, target_currency, rate_provider=rate_provider
            )
    return total


def _projected_recurring_spend(
    recurring: Iterable[Transaction],
    month: date,
    today: date,
    target_currency: str,
    rate_provider: Optional[StaticRateProvider],
) -> Decimal:
    total = ZERO
    for expense in recurring:
        total += monthly_recurring_amount(
            expense, month, today, target_currency, rate_provider=rate_provider
        )
    return total
