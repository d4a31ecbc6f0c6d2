import unittest
from datetime import date, datetime
from decimal import Decimal
from unittest import mock

from savings_projection.records import Transaction
from savings_projection.recurring_projection import (
    RecurrenceExpansionError,
    expand_occurrences,
    project_recurring_expenses,
    with_projections,
)


def make_expense(**overrides) -> Transaction:
    values = {
        "id": "exp-1",
        "amount": Decimal("1000"),
        "currency": "THB",
        "date": date(2024, 1, 15),
        "is_recurring": True,
        "recurrence_interval": "monthly",
    }
    values.update(overrides)
    return Transaction(**values)


class ExpandOccurrencesTests(unittest.TestCase):
    def test_monthly_expense_projects_twelve_months_from_today(self) -> None:
        occurrences = list(expand_occurrences(make_expense(), date(2024, 6, 1)))

        self.assertEqual(occurrences[0], date(2024, 6, 15))
        self.assertEqual(occurrences[-1], date(2025, 5, 15))
        self.assertEqual(len(occurrences), 12)
        self.assertIn(date(2025, 1, 15), occurrences)
        self.assertTrue(all(occurrence >= date(2024, 6, 1) for occurrence in occurrences))
        self.assertTrue(all(occurrence <= date(2025, 6, 1) for occurrence in occurrences))

    def test_accepts_datetime_today(self) -> None:
        occurrences = list(
            expand_occurrences(make_expense(), datetime(2024, 6, 1, 23, 59))
        )

        self.assertEqual(occurrences[0], date(2024, 6, 15))

    def test_non_recurring_expense_has_no_projections(self) -> None:
        expense = make_expense(is_recurring=False, recurrence_interval=None)

        self.assertEqual(list(expand_occurrences(expense, date(2024, 6, 1))), [])

    def test_stop_date_is_inclusive(self) -> None:
        expense = make_expense(
            date=date(2024, 5, 10),
            recurrence_interval="weekly",
            stop_date=date(2024, 6, 21),
        )

        occurrences = list(expand_occurrences(expense, date(2024, 6, 1)))

        self.assertEqual(
            occurrences,
            [date(2024, 6, 7), date(2024, 6, 14), date(2024, 6, 21)],
        )

    def test_future_start_date_is_not_projected(self) -> None:
        expense = make_expense(date=date(2024, 7, 1))

        self.assertEqual(list(expand_occurrences(expense, date(2024, 6, 1))), [])

    def test_stop_date_before_today_ends_recurrence(self) -> None:
        expense = make_expense(stop_date=date(2024, 5, 31))

        self.assertEqual(list(expand_occurrences(expense, date(2024, 6, 1))), [])

    def test_anchor_on_today_is_not_repeated(self) -> None:
        expense = make_expense(date=date(2024, 6, 1), stop_date=date(2024, 8, 1))

        occurrences = list(expand_occurrences(expense, date(2024, 6, 1)))

        self.assertEqual(occurrences, [date(2024, 7, 1), date(2024, 8, 1)])

    def test_occurrence_on_today_is_included(self) -> None:
        expense = make_expense(date=date(2024, 5, 1), stop_date=date(2024, 7, 1))

        occurrences = list(expand_occurrences(expense, date(2024, 6, 1)))

        self.assertEqual(occurrences, [date(2024, 6, 1), date(2024, 7, 1)])

    def test_missing_interval_defaults_to_monthly(self) -> None:
        expense = make_expense(
            date=date(2024, 3, 10),
            recurrence_interval=None,
            stop_date=date(2024, 5, 31),
        )

        occurrences = list(expand_occurrences(expense, date(2024, 4, 1)))

        self.assertEqual(occurrences, [date(2024, 4, 10), date(2024, 5, 10)])

    def test_yearly_expense_stays_within_horizon(self) -> None:
        expense = make_expense(date=date(2023, 2, 28), recurrence_interval="yearly")

        occurrences = list(expand_occurrences(expense, date(2024, 1, 1)))

        self.assertEqual(occurrences, [date(2024, 2, 28)])

    def test_daily_expense_with_explicit_horizon(self) -> None:
        expense = make_expense(date=date(2024, 6, 1), recurrence_interval="daily")

        occurrences = list(
            expand_occurrences(expense, date(2024, 6, 1), horizon_end=date(2024, 6, 5))
        )

        self.assertEqual(
            occurrences,
            [date(2024, 6, 2), date(2024, 6, 3), date(2024, 6, 4), date(2024, 6, 5)],
        )

    def test_month_end_day_shifts_after_short_month(self) -> None:
        expense = make_expense(date=date(2024, 1, 31), stop_date=date(2024, 4, 30))

        occurrences = list(expand_occurrences(expense, date(2024, 2, 1)))

        self.assertEqual(
            occurrences,
            [date(2024, 2, 29), date(2024, 3, 29), date(2024, 4, 29)],
        )

    def test_unknown_interval_raises(self) -> None:
        expense = make_expense(recurrence_interval="quarterly")

        with self.assertRaises(ValueError):
            list(expand_occurrences(expense, date(2024, 6, 1)))

    def test_non_advancing_step_raises(self) -> None:
        expense = make_expense(date=date(2024, 5, 1))

        with mock.patch(
            "savings_projection.recurring_projection.next_occurrence",
            side_effect=lambda current, interval: current,
        ):
            with self.assertRaises(RecurrenceExpansionError):
                list(expand_occurrences(expense, date(2024, 6, 1)))


class ProjectRecurringExpensesTests(unittest.TestCase):
    def test_projects_copies_flagged_as_projections(self) -> None:
        recurring = make_expense(
            date=date(2024, 5, 20),
            stop_date=date(2024, 7, 20),
            category_id="food",
        )
        one_off = make_expense(id="exp-2", is_recurring=False, recurrence_interval=None)

        projections = project_recurring_expenses([recurring, one_off], date(2024, 6, 1))

        self.assertEqual(
            [projection.id for projection in projections],
            ["exp-1-projection-2024-06-20", "exp-1-projection-2024-07-20"],
        )
        self.assertTrue(all(projection.is_projection for projection in projections))
        self.assertTrue(all(projection.category_id == "food" for projection in projections))
        self.assertEqual(projections[0].amount, Decimal("1000"))

    def test_existing_projections_are_not_expanded_again(self) -> None:
        projection = make_expense(is_projection=True)

        self.assertEqual(project_recurring_expenses([projection], date(2024, 6, 1)), [])

    def test_with_projections_sorts_ledger_by_date(self) -> None:
        recurring = make_expense(date=date(2024, 5, 20), stop_date=date(2024, 6, 20))
        one_off = make_expense(
            id="exp-2",
            date=date(2024, 6, 1),
            is_recurring=False,
            recurrence_interval=None,
        )

        ledger = with_projections([recurring, one_off], date(2024, 6, 1))

        self.assertEqual(
            [(entry.date, entry.is_projection) for entry in ledger],
            [
                (date(2024, 5, 20), False),
                (date(2024, 6, 1), False),
                (date(2024, 6, 20), True),
            ],
        )


if __name__ == "__main__":
    unittest.main()
