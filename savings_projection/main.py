import logging
import os
from dataclasses import asdict
from datetime import date
from decimal import Decimal

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from savings_projection.budget_engine import evaluate_category_budgets
from savings_projection.category_totals import (
    aggregate_category_totals,
    order_for_display,
    total_expenses,
)
from savings_projection.currency_conversion import (
    BASE_CURRENCY,
    CURRENCY_SYMBOLS,
    DEFAULT_PROVIDER,
    convert_amount,
    format_amount,
    normalize_currency,
)
from savings_projection.expense_stats import (
    biggest_expense,
    most_expensive_day,
    spending_averages,
    spending_trend,
)
from savings_projection.income_projection import current_monthly_income
from savings_projection.monthly_totals import aggregate_monthly_totals
from savings_projection.records import (
    Category,
    CategoryBudget,
    IncomeSource,
    Transaction,
    resolve_interval,
    sort_categories,
)
from savings_projection.recurring_projection import with_projections
from savings_projection.savings_insights import month_over_month_change, savings_summary

logger = logging.getLogger(__name__)

app = FastAPI()

frontend_origin = os.getenv("FRONTEND_ORIGIN", "http://localhost:3000")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[frontend_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_system_default_currency() -> str:
    raw = os.getenv("DEFAULT_CURRENCY", BASE_CURRENCY)
    try:
        normalized = normalize_currency(raw)
        DEFAULT_PROVIDER.get_rate(normalized)
    except ValueError:
        logger.warning("Ignoring unsupported DEFAULT_CURRENCY %r", raw)
        return BASE_CURRENCY
    return normalized


def get_int_setting(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, raw)
        return default
    return max(0, value)


SYSTEM_DEFAULT_CURRENCY = get_system_default_currency()
DEFAULT_MONTHS_BACK = get_int_setting("MONTHS_BACK", 6)
DEFAULT_MONTHS_FORWARD = get_int_setting("MONTHS_FORWARD", 3)
YEARLY_SAVINGS_TARGET = Decimal(os.getenv("YEARLY_SAVINGS_TARGET", "50000"))


def supported_currency(value: str) -> str:
    normalized = normalize_currency(value)
    DEFAULT_PROVIDER.get_rate(normalized)
    return normalized


class ExpensePayload(BaseModel):
    id: str
    amount: Decimal
    currency: str = BASE_CURRENCY
    date: date
    category_id: str | None = None
    is_recurring: bool = False
    recurrence_interval: str | None = None
    stop_date: date | None = None
    description: str = ""

    def to_record(self) -> Transaction:
        if self.amount <= 0:
            raise ValueError("Amount must be greater than zero.")
        interval = None
        if self.is_recurring:
            interval = resolve_interval(self.recurrence_interval)
        return Transaction(
            id=self.id,
            amount=self.amount,
            currency=supported_currency(self.currency),
            date=self.date,
            category_id=self.category_id,
            is_recurring=self.is_recurring,
            recurrence_interval=interval,
            stop_date=self.stop_date if self.is_recurring else None,
            description=self.description.strip(),
        )


class ExpenseResponse(ExpensePayload):
    is_projection: bool = False


class IncomePayload(BaseModel):
    id: str
    amount: Decimal
    currency: str = BASE_CURRENCY
    start_date: date
    is_recurring: bool = True
    recurrence_interval: str | None = None
    end_date: date | None = None
    description: str = ""

    def to_record(self) -> IncomeSource:
        if self.amount <= 0:
            raise ValueError("Amount must be greater than zero.")
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("End date must be on or after start date.")
        interval = None
        if self.is_recurring:
            interval = resolve_interval(self.recurrence_interval)
        return IncomeSource(
            id=self.id,
            amount=self.amount,
            currency=supported_currency(self.currency),
            start_date=self.start_date,
            is_recurring=self.is_recurring,
            recurrence_interval=interval,
            end_date=self.end_date,
            description=self.description.strip(),
        )


class CategoryPayload(BaseModel):
    id: str
    name: str
    icon: str = "circle"
    color: str = "bg-gray-100"
    display_order: int | None = None

    def to_record(self) -> Category:
        name = self.name.strip()
        if not name:
            raise ValueError("Category name required.")
        return Category(
            id=self.id,
            name=name,
            icon=self.icon,
            color=self.color,
            display_order=self.display_order,
        )


class BudgetPayload(BaseModel):
    id: str
    category_id: str
    amount: Decimal
    currency: str = BASE_CURRENCY
    month: str

    def to_record(self) -> CategoryBudget:
        return CategoryBudget(
            id=self.id,
            category_id=self.category_id,
            amount=self.amount,
            currency=supported_currency(self.currency),
            month=self.month.strip(),
        )


class LedgerPayload(BaseModel):
    expenses: list[ExpensePayload] = []
    income_sources: list[IncomePayload] = []
    categories: list[CategoryPayload] = []
    budgets: list[BudgetPayload] = []


class CurrencyResponse(BaseModel):
    code: str
    rate: Decimal
    symbol: str


class ConversionResponse(BaseModel):
    amount: Decimal
    currency: str
    formatted: str


class MonthlyTotalResponse(BaseModel):
    month: str
    month_start: date
    income: Decimal
    expenses: Decimal
    savings: Decimal
    is_projected: bool


class CategoryTotalResponse(BaseModel):
    category_id: str
    category_name: str
    amount: Decimal
    percentage: Decimal
    color: str
    budget: Decimal | None = None
    display_order: int


class CategoryBreakdownResponse(BaseModel):
    categories: list[CategoryTotalResponse]
    total_expenses: Decimal
    currency: str


class CategoryResponse(BaseModel):
    id: str
    name: str
    icon: str
    color: str
    display_order: int | None = None


class BudgetStatusResponse(BaseModel):
    category_id: str | None = None
    month: str
    budget: Decimal
    current_value: Decimal
    remaining: Decimal
    status: str


class MilestoneResponse(BaseModel):
    amount: Decimal
    months_to_reach: int


class ProjectionResponse(BaseModel):
    years: int
    projected: Decimal
    target: Decimal
    ratio: Decimal
    progress: Decimal


class CumulativeSavingsResponse(BaseModel):
    month: str
    savings: Decimal
    cumulative_total: Decimal


class ChangeResponse(BaseModel):
    value: Decimal
    is_positive: bool


class SavingsInsightsResponse(BaseModel):
    currency: str
    monthly_income: Decimal
    current_month: MonthlyTotalResponse | None = None
    savings_rate: Decimal
    average_monthly_savings: Decimal
    yearly_total: Decimal
    yearly_target: Decimal
    progress_towards_yearly_target: Decimal
    milestones: list[MilestoneResponse]
    projections: list[ProjectionResponse]
    cumulative: list[CumulativeSavingsResponse]
    expense_change: ChangeResponse
    savings_change: ChangeResponse


class AveragesResponse(BaseModel):
    daily: Decimal
    weekly: Decimal
    monthly: Decimal
    days: int


class ExpensiveDayResponse(BaseModel):
    day: date | None = None
    total: Decimal


class TrendResponse(BaseModel):
    change: int
    is_positive: bool


class ExpenseInsightsResponse(BaseModel):
    currency: str
    averages: AveragesResponse
    biggest_expense: ExpenseResponse | None = None
    most_expensive_day: ExpensiveDayResponse
    trend: TrendResponse


def resolve_currency(value: str | None) -> str:
    if value is None:
        return SYSTEM_DEFAULT_CURRENCY
    try:
        normalized = normalize_currency(value)
        DEFAULT_PROVIDER.get_rate(normalized)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return normalized


def resolve_today(value: date | None) -> date:
    return value or date.today()


def load_ledger(payload: LedgerPayload) -> tuple[
    list[Transaction], list[IncomeSource], list[Category], list[CategoryBudget]
]:
    try:
        return (
            [item.to_record() for item in payload.expenses],
            [item.to_record() for item in payload.income_sources],
            [item.to_record() for item in payload.categories],
            [item.to_record() for item in payload.budgets],
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def expense_response(expense: Transaction) -> ExpenseResponse:
    return ExpenseResponse(**asdict(expense))


@app.get("/currencies", response_model=list[CurrencyResponse])
def list_currencies() -> list[CurrencyResponse]:
    return [
        CurrencyResponse(
            code=code,
            rate=DEFAULT_PROVIDER.get_rate(code),
            symbol=CURRENCY_SYMBOLS.get(code, code),
        )
        for code in DEFAULT_PROVIDER.currencies
    ]


@app.get("/convert", response_model=ConversionResponse)
def convert(
    amount: Decimal = Query(...),
    source: str = Query(...),
    target: str | None = Query(None),
) -> ConversionResponse:
    target_currency = resolve_currency(target)
    try:
        converted = convert_amount(amount, source, target_currency)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return ConversionResponse(
        amount=converted,
        currency=target_currency,
        formatted=format_amount(converted, target_currency),
    )


@app.post("/categories/sorted", response_model=list[CategoryResponse])
def sorted_categories(payload: LedgerPayload) -> list[CategoryResponse]:
    _, _, categories, _ = load_ledger(payload)
    return [CategoryResponse(**asdict(category)) for category in sort_categories(categories)]


@app.post("/projections/expenses", response_model=list[ExpenseResponse])
def projected_expenses(
    payload: LedgerPayload,
    today: date | None = Query(None),
) -> list[ExpenseResponse]:
    expenses, _, _, _ = load_ledger(payload)
    ledger = with_projections(expenses, resolve_today(today))
    return [expense_response(expense) for expense in ledger]


@app.post("/summary/monthly", response_model=list[MonthlyTotalResponse])
def monthly_summary(
    payload: LedgerPayload,
    today: date | None = Query(None),
    months_back: int = Query(DEFAULT_MONTHS_BACK, ge=0, le=60),
    months_forward: int = Query(DEFAULT_MONTHS_FORWARD, ge=0, le=12),
    currency: str | None = Query(None),
) -> list[MonthlyTotalResponse]:
    expenses, income_sources, _, _ = load_ledger(payload)
    target_currency = resolve_currency(currency)
    totals = aggregate_monthly_totals(
        expenses,
        income_sources,
        resolve_today(today),
        months_back=months_back,
        months_forward=months_forward,
        target_currency=target_currency,
    )
    logger.debug(
        "Monthly summary over %d expenses and %d income sources",
        len(expenses),
        len(income_sources),
    )
    return [MonthlyTotalResponse(**asdict(total)) for total in totals]


@app.post("/summary/categories", response_model=CategoryBreakdownResponse)
def category_summary(
    payload: LedgerPayload,
    month: str | None = Query(None),
    currency: str | None = Query(None),
    order: str = Query("amount"),
) -> CategoryBreakdownResponse:
    expenses, _, categories, budgets = load_ledger(payload)
    target_currency = resolve_currency(currency)
    if order not in ("amount", "display"):
        raise HTTPException(status_code=400, detail="Order must be amount or display.")
    totals = aggregate_category_totals(
        expenses,
        categories,
        budgets,
        month=month,
        target_currency=target_currency,
    )
    if order == "display":
        totals = order_for_display(totals)
    return CategoryBreakdownResponse(
        categories=[CategoryTotalResponse(**asdict(total)) for total in totals],
        total_expenses=total_expenses(expenses, target_currency),
        currency=target_currency,
    )


@app.post("/budgets/status", response_model=list[BudgetStatusResponse])
def budget_status(
    payload: LedgerPayload,
    month: str | None = Query(None),
    currency: str | None = Query(None),
) -> list[BudgetStatusResponse]:
    expenses, _, _, budgets = load_ledger(payload)
    target_currency = resolve_currency(currency)
    try:
        evaluations = evaluate_category_budgets(
            expenses, budgets, month=month, target_currency=target_currency
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return [BudgetStatusResponse(**asdict(evaluation)) for evaluation in evaluations]


@app.post("/insights/savings", response_model=SavingsInsightsResponse)
def savings_insights(
    payload: LedgerPayload,
    today: date | None = Query(None),
    months_back: int = Query(DEFAULT_MONTHS_BACK, ge=0, le=60),
    months_forward: int = Query(DEFAULT_MONTHS_FORWARD, ge=0, le=12),
    currency: str | None = Query(None),
    yearly_target: Decimal | None = Query(None, gt=0),
) -> SavingsInsightsResponse:
    expenses, income_sources, _, _ = load_ledger(payload)
    target_currency = resolve_currency(currency)
    evaluation_date = resolve_today(today)
    if yearly_target is None:
        # The configured target is kept in the base currency.
        yearly_target = convert_amount(YEARLY_SAVINGS_TARGET, BASE_CURRENCY, target_currency)

    totals = aggregate_monthly_totals(
        expenses,
        income_sources,
        evaluation_date,
        months_back=months_back,
        months_forward=months_forward,
        target_currency=target_currency,
    )
    summary = savings_summary(
        totals,
        evaluation_date,
        yearly_target=yearly_target,
        currency=target_currency,
    )
    current_month = None
    if summary.current_month is not None:
        current_month = MonthlyTotalResponse(**asdict(summary.current_month))

    return SavingsInsightsResponse(
        currency=target_currency,
        monthly_income=current_monthly_income(
            income_sources, evaluation_date, target_currency
        ),
        current_month=current_month,
        savings_rate=summary.savings_rate,
        average_monthly_savings=summary.average_monthly_savings,
        yearly_total=summary.yearly_total,
        yearly_target=yearly_target,
        progress_towards_yearly_target=summary.progress_towards_yearly_target,
        milestones=[MilestoneResponse(**asdict(item)) for item in summary.milestones],
        projections=[
            ProjectionResponse(**asdict(item), progress=item.progress)
            for item in summary.projections
        ],
        cumulative=[CumulativeSavingsResponse(**asdict(item)) for item in summary.cumulative],
        expense_change=ChangeResponse(
            **asdict(month_over_month_change(totals, evaluation_date, "expenses"))
        ),
        savings_change=ChangeResponse(
            **asdict(month_over_month_change(totals, evaluation_date, "savings"))
        ),
    )


@app.post("/insights/expenses", response_model=ExpenseInsightsResponse)
def expense_insights(
    payload: LedgerPayload,
    today: date | None = Query(None),
    currency: str | None = Query(None),
) -> ExpenseInsightsResponse:
    expenses, _, _, _ = load_ledger(payload)
    target_currency = resolve_currency(currency)
    biggest = biggest_expense(expenses, target_currency)
    busiest = most_expensive_day(expenses, target_currency)
    return ExpenseInsightsResponse(
        currency=target_currency,
        averages=AveragesResponse(**asdict(spending_averages(expenses, target_currency))),
        biggest_expense=expense_response(biggest) if biggest else None,
        most_expensive_day=ExpensiveDayResponse(day=busiest.date, total=busiest.total),
        trend=TrendResponse(
            **asdict(spending_trend(expenses, resolve_today(today), target_currency))
        ),
    )
