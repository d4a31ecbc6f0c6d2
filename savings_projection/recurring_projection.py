from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Iterable, Iterator, List, Optional

from savings_projection.records import (
    DAILY,
    MONTHLY,
    WEEKLY,
    Transaction,
    add_months,
    as_date,
    resolve_interval,
)

PROJECTION_HORIZON_MONTHS = 12


class RecurrenceExpansionError(RuntimeError):
    """Raised when stepping a recurrence does not move forward in time."""


def projection_horizon(today: date | datetime) -> date:
    return add_months(as_date(today), PROJECTION_HORIZON_MONTHS)


def next_occurrence(current: date, interval: Optional[str]) -> date:
    normalized = resolve_interval(interval)
    if normalized == DAILY:
        return current + timedelta(days=1)
    if normalized == WEEKLY:
        return current + timedelta(weeks=1)
    if normalized == MONTHLY:
        return add_months(current, 1)
    return add_months(current, 12)


def _advance(current: date, interval: Optional[str]) -> date:
    following = next_occurrence(current, interval)
    if following <= current:
        raise RecurrenceExpansionError(
            f"Recurrence step from {current.isoformat()} did not advance."
        )
    return following


def expand_occurrences(
    transaction: Transaction,
    today: date | datetime,
    horizon_end: Optional[date] = None,
) -> Iterator[date]:
    """Yield the projected occurrence dates of a recurring transaction.

    The anchor occurrence (the stored ``date``) is never yielded, and neither
    is anything before ``today``. Occurrences stop at the stop date or the
    projection horizon, whichever comes first; both bounds are inclusive.
    """
    if not transaction.is_recurring:
        return

    today = as_date(today)
    start_date = as_date(transaction.date)
    if start_date > today:
        return

    end_date = horizon_end or projection_horizon(today)
    if transaction.stop_date is not None:
        end_date = min(as_date(transaction.stop_date), end_date)
    if end_date < today:
        return

    interval = transaction.recurrence_interval
    current = start_date
    while current < today:
        current = _advance(current, interval)
    if current == start_date:
        current = _advance(current, interval)

    while current <= end_date:
        yield current
        current = _advance(current, interval)


def occurrences_with_anchor(
    transaction: Transaction,
    today: date | datetime,
    horizon_end: Optional[date] = None,
) -> List[date]:
    anchor = as_date(transaction.date)
    return [anchor, *expand_occurrences(transaction, today, horizon_end)]


def project_recurring_expenses(
    expenses: Iterable[Transaction],
    today: date | datetime,
    horizon_end: Optional[date] = None,
) -> List[Transaction]:
    """Materialize projected copies of recurring expenses for ledger display."""
    projections: List[Transaction] = []
    for expense in expenses:
        if not expense.is_recurring or expense.is_projection:
            continue
        for occurrence in expand_occurrences(expense, today, horizon_end):
            projections.append(
                replace(
                    expense,
                    id=f"{expense.id}-projection-{occurrence.isoformat()}",
                    date=occurrence,
                    is_projection=True,
                )
            )
    return projections


def with_projections(
    expenses: Iterable[Transaction],
    today: date | datetime,
) -> List[Transaction]:
    stored = list(expenses)
    combined = stored + project_recurring_expenses(stored, today)
    return sorted(combined, key=lambda expense: (expense.date, expense.id))

