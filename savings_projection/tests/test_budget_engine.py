import unittest
from datetime import date
from decimal import Decimal

from savings_projection.budget_engine import (
    evaluate_category_budget,
    evaluate_category_budgets,
    evaluate_savings_target,
)
from savings_projection.monthly_totals import MonthlyTotal
from savings_projection.records import CategoryBudget, Transaction


def budget(category_id: str, amount: str, month: str = "Jun 2024") -> CategoryBudget:
    return CategoryBudget(
        id=f"{category_id}-{month}",
        category_id=category_id,
        amount=Decimal(amount),
        currency="THB",
        month=month,
    )


class BudgetEngineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.expenses = [
            Transaction(
                id="1",
                amount=Decimal("400"),
                currency="THB",
                date=date(2024, 6, 1),
                category_id="food",
            ),
            Transaction(
                id="2",
                amount=Decimal("14"),
                currency="USD",
                date=date(2024, 6, 20),
                category_id="food",
            ),
            Transaction(
                id="3",
                amount=Decimal("300"),
                currency="THB",
                date=date(2024, 5, 30),
                category_id="food",
            ),
            Transaction(
                id="4",
                amount=Decimal("100"),
                currency="THB",
                date=date(2024, 6, 2),
                category_id="transport",
            ),
        ]

    def test_category_budget_sums_matching_month(self) -> None:
        result = evaluate_category_budget(self.expenses, budget("food", "1000"))

        self.assertEqual(result.current_value, Decimal("900"))
        self.assertEqual(result.remaining, Decimal("100"))
        self.assertEqual(result.status, "ok")

    def test_category_budget_reports_overspend(self) -> None:
        result = evaluate_category_budget(self.expenses, budget("food", "500"))

        self.assertEqual(result.remaining, Decimal("-400"))
        self.assertEqual(result.status, "over")

    def test_filters_budgets_by_month(self) -> None:
        results = evaluate_category_budgets(
            self.expenses,
            [budget("food", "1000"), budget("food", "250", month="May 2024")],
            month="May 2024",
        )

        self.assertEqual(len(results), 1)
        self.assertEqual(results[0].current_value, Decimal("300"))
        self.assertEqual(results[0].status, "over")

    def test_rejects_non_positive_budget(self) -> None:
        with self.assertRaises(ValueError):
            evaluate_category_budget(self.expenses, budget("food", "0"))

    def test_rejects_malformed_month(self) -> None:
        with self.assertRaises(ValueError):
            evaluate_category_budget(self.expenses, budget("food", "100", month="2024-06"))

    def test_savings_target_uses_monthly_savings(self) -> None:
        total = MonthlyTotal(
            month="Jul 2024",
            month_start=date(2024, 7, 1),
            income=Decimal("1000"),
            expenses=Decimal("400"),
            savings=Decimal("600"),
        )

        result = evaluate_savings_target(total, Decimal("500"))

        self.assertEqual(result.current_value, Decimal("600"))
        self.assertEqual(result.remaining, Decimal("-100"))
        self.assertEqual(result.status, "met")


if __name__ == "__main__":
    unittest.main()
