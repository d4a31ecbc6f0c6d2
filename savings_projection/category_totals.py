from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from savings_projection.currency_conversion import (
    BASE_CURRENCY,
    StaticRateProvider,
    convert_amount,
)
from savings_projection.records import (
    UNORDERED_POSITION,
    Category,
    CategoryBudget,
    Transaction,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class CategoryTotal:
    category_id: str
    category_name: str
    amount: Decimal
    percentage: Decimal
    color: str
    budget: Optional[Decimal] = None
    display_order: int = UNORDERED_POSITION


def aggregate_category_totals(
    expenses: Iterable[Transaction],
    categories: Iterable[Category],
    budgets: Iterable[CategoryBudget] = (),
    month: Optional[str] = None,
    target_currency: str = BASE_CURRENCY,
    rate_provider: StaticRateProvider | None = None,
) -> List[CategoryTotal]:
    """Total expenses per known category, largest first.

    Expenses without a category, or pointing at a category that no longer
    exists, are left out. When ``month`` is given only budgets for that
    month key are attached.
    """
    category_map = {category.id: category for category in categories}
    budget_map = _budgets_by_category(budgets, month, target_currency, rate_provider)

    amounts: Dict[str, Decimal] = {}
    dropped = 0
    for expense in expenses:
        if expense.category_id is None or expense.category_id not in category_map:
            dropped += 1
            continue
        amounts[expense.category_id] = amounts.get(expense.category_id, ZERO) + convert_amount(
            expense.amount, expense.currency, target_currency, rate_provider=rate_provider
        )
    if dropped:
        logger.debug("Skipped %d expenses without a known category", dropped)

    grand_total = sum(amounts.values(), ZERO)
    results = []
    for category_id, amount in amounts.items():
        category = category_map[category_id]
        results.append(
            CategoryTotal(
                category_id=category_id,
                category_name=category.name,
                amount=amount,
                percentage=amount / grand_total * HUNDRED if grand_total > ZERO else ZERO,
                color=category.color,
                budget=budget_map.get(category_id),
                display_order=_display_position(category),
            )
        )
    return sorted(results, key=lambda total: total.amount, reverse=True)


def total_expenses(
    expenses: Iterable[Transaction],
    target_currency: str = BASE_CURRENCY,
    rate_provider: StaticRateProvider | None = None,
) -> Decimal:
    """Overall spend, including expenses that have no category."""
    total = ZERO
    for expense in expenses:
        total += convert_amount(
            expense.amount, expense.currency, target_currency, rate_provider=rate_provider
        )
    return total


def order_for_display(totals: Iterable[CategoryTotal]) -> List[CategoryTotal]:
    return sorted(totals, key=lambda total: (total.display_order, -total.amount))


def _display_position(category: Category) -> int:
    if category.display_order is None:
        return UNORDERED_POSITION
    return category.display_order


def _budgets_by_category(
    budgets: Iterable[CategoryBudget],
    month: Optional[str],
    target_currency: str,
    rate_provider: Optional[StaticRateProvider],
) -> Dict[str, Decimal]:
    budget_map: Dict[str, Decimal] = {}
    for budget in budgets:
        if month is not None and budget.month != month:
            continue
        budget_map[budget.category_id] = convert_amount(
            budget.amount, budget.currency, target_currency, rate_provider=rate_provider
        )
    return budget_map
