"""Derived savings statistics over a monthly income/expense series."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from savings_projection.currency_conversion import BASE_CURRENCY, normalize_currency
from savings_projection.monthly_totals import MonthlyTotal, find_month
from savings_projection.records import month_start

ZERO = Decimal("0")
HUNDRED = Decimal("100")
MONTHS_PER_YEAR = 12
DEFAULT_YEARLY_TARGET = Decimal("50000")
PROJECTION_YEARS = (1, 3, 5)
DEFAULT_MILESTONES = {
    "THB": (Decimal("5000"), Decimal("10000"), Decimal("50000")),
    "USD": (Decimal("100"), Decimal("500"), Decimal("1000")),
    "EUR": (Decimal("100"), Decimal("500"), Decimal("1000")),
}


@dataclass(frozen=True)
class CumulativeSavings:
    month: str
    savings: Decimal
    cumulative_total: Decimal


@dataclass(frozen=True)
class Milestone:
    amount: Decimal
    months_to_reach: int


@dataclass(frozen=True)
class SavingsProjection:
    years: int
    projected: Decimal
    target: Decimal
    ratio: Decimal

    @property
    def progress(self) -> Decimal:
        """Ratio capped at 100 for progress displays."""
        return min(self.ratio, HUNDRED)


@dataclass(frozen=True)
class PercentChange:
    value: Decimal
    is_positive: bool


@dataclass(frozen=True)
class SavingsSummary:
    current_month: Optional[MonthlyTotal]
    savings_rate: Decimal
    average_monthly_savings: Decimal
    yearly_total: Decimal
    progress_towards_yearly_target: Decimal
    milestones: List[Milestone] = field(default_factory=list)
    projections: List[SavingsProjection] = field(default_factory=list)
    cumulative: List[CumulativeSavings] = field(default_factory=list)


def savings_rate(total: Optional[MonthlyTotal]) -> Decimal:
    if total is None or total.income == ZERO:
        return ZERO
    return total.savings / total.income * HUNDRED


def cumulative_savings(totals: Iterable[MonthlyTotal]) -> List[CumulativeSavings]:
    running = ZERO
    rows = []
    for total in totals:
        running += total.savings
        rows.append(
            CumulativeSavings(
                month=total.month,
                savings=total.savings,
                cumulative_total=running,
            )
        )
    return rows


def average_monthly_savings(totals: Sequence[MonthlyTotal]) -> Decimal:
    if not totals:
        return ZERO
    return sum((total.savings for total in totals), ZERO) / len(totals)


def months_to_reach(amount: Decimal, monthly_savings: Decimal) -> int:
    """Whole months needed to save ``amount``; 0 means it is never reached."""
    if monthly_savings <= ZERO:
        return 0
    return math.ceil(amount / monthly_savings)


def project_savings(
    monthly_savings: Decimal,
    yearly_target: Decimal,
    years: int,
) -> SavingsProjection:
    projected = monthly_savings * MONTHS_PER_YEAR * years
    target = yearly_target * years
    ratio = projected / target * HUNDRED if target > ZERO else ZERO
    return SavingsProjection(years=years, projected=projected, target=target, ratio=ratio)


def future_months(totals: Iterable[MonthlyTotal], today: date | datetime) -> List[MonthlyTotal]:
    current = month_start(today)
    return sorted(
        (total for total in totals if total.month_start > current),
        key=lambda total: total.month_start,
    )


def savings_summary(
    totals: Sequence[MonthlyTotal],
    today: date | datetime,
    yearly_target: Decimal = DEFAULT_YEARLY_TARGET,
    currency: str = BASE_CURRENCY,
    milestones: Optional[Iterable[Decimal]] = None,
) -> SavingsSummary:
    current = find_month(totals, today)
    upcoming = future_months(totals, today)

    average = average_monthly_savings(upcoming)
    yearly_total = average * MONTHS_PER_YEAR
    first_year = project_savings(average, yearly_target, 1)
    if milestones is None:
        milestones = DEFAULT_MILESTONES.get(
            normalize_currency(currency), DEFAULT_MILESTONES["USD"]
        )

    return SavingsSummary(
        current_month=current,
        savings_rate=savings_rate(current),
        average_monthly_savings=average,
        yearly_total=yearly_total,
        progress_towards_yearly_target=first_year.progress if upcoming else ZERO,
        milestones=[
            Milestone(amount=amount, months_to_reach=months_to_reach(amount, average))
            for amount in (milestones if upcoming else ())
        ],
        projections=[project_savings(average, yearly_target, years) for years in PROJECTION_YEARS],
        cumulative=cumulative_savings(upcoming),
    )


def month_over_month_change(
    totals: Sequence[MonthlyTotal],
    today: date | datetime,
    field_name: str,
) -> PercentChange:
    """Percent change of ``expenses`` or ``savings`` against the previous month.

    A drop in expenses and a rise in savings count as positive.
    """
    if field_name not in ("expenses", "savings"):
        raise ValueError("Only expenses or savings can be compared.")
    current = month_start(today)
    index = next(
        (position for position, total in enumerate(totals) if total.month_start == current),
        -1,
    )
    if index <= 0:
        return PercentChange(value=ZERO, is_positive=False)

    previous = getattr(totals[index - 1], field_name)
    if previous == ZERO:
        return PercentChange(value=ZERO, is_positive=False)
    change = (getattr(totals[index], field_name) - previous) / previous * HUNDRED
    is_positive = change < ZERO if field_name == "expenses" else change > ZERO
    return PercentChange(value=abs(change), is_positive=is_positive)
