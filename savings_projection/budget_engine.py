from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional

from savings_projection.currency_conversion import (
    BASE_CURRENCY,
    StaticRateProvider,
    convert_amount,
)
from savings_projection.monthly_totals import MonthlyTotal
from savings_projection.records import (
    CategoryBudget,
    Transaction,
    as_date,
    parse_month_key,
    same_month,
)

ZERO = Decimal("0")


@dataclass(frozen=True)
class BudgetEvaluation:
    category_id: Optional[str]
    month: str
    budget: Decimal
    current_value: Decimal
    remaining: Decimal
    status: str


def evaluate_category_budget(
    expenses: Iterable[Transaction],
    budget: CategoryBudget,
    target_currency: str = BASE_CURRENCY,
    rate_provider: StaticRateProvider | None = None,
) -> BudgetEvaluation:
    if budget.amount <= ZERO:
        raise ValueError("budget.amount must be greater than zero.")

    month = parse_month_key(budget.month)
    limit = convert_amount(
        budget.amount, budget.currency, target_currency, rate_provider=rate_provider
    )
    current_value = ZERO
    for expense in expenses:
        if expense.category_id != budget.category_id:
            continue
        if not same_month(as_date(expense.date), month):
            continue
        current_value += convert_amount(
            expense.amount, expense.currency, target_currency, rate_provider=rate_provider
        )

    return BudgetEvaluation(
        category_id=budget.category_id,
        month=budget.month,
        budget=limit,
        current_value=current_value,
        remaining=limit - current_value,
        status="ok" if current_value <= limit else "over",
    )


def evaluate_category_budgets(
    expenses: Iterable[Transaction],
    budgets: Iterable[CategoryBudget],
    month: Optional[str] = None,
    target_currency: str = BASE_CURRENCY,
    rate_provider: StaticRateProvider | None = None,
) -> List[BudgetEvaluation]:
    stored = list(expenses)
    return [
        evaluate_category_budget(
            stored, budget, target_currency, rate_provider=rate_provider
        )
        for budget in budgets
        if month is None or budget.month == month
    ]


def evaluate_savings_target(total: MonthlyTotal, target: Decimal) -> BudgetEvaluation:
    if target <= ZERO:
        raise ValueError("target must be greater than zero.")
    return BudgetEvaluation(
        category_id=None,
        month=total.month,
        budget=target,
        current_value=total.savings,
        remaining=target - total.savings,
        status="met" if total.savings >= target else "short",
    )
