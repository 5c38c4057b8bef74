import datetime as dt
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

from models import IncomeSource, RecurringFrequency

# Money and percentages are Decimal in Python and plain JSON numbers on the wire.
Money = Annotated[
    Decimal, PlainSerializer(float, return_type=float, when_used="json")
]
Percent = Annotated[
    Decimal, PlainSerializer(float, return_type=float, when_used="json")
]


def cents_to_amount(cents: int) -> Decimal:
    return Decimal(cents).scaleb(-2)


def optional_amount(cents: Optional[int]) -> Optional[Decimal]:
    return cents_to_amount(cents) if cents is not None else None


class ReportModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )


class PeriodOut(ReportModel):
    label: str
    start_date: dt.date
    end_date: dt.date  # last day, inclusive
    year: Optional[int] = None
    month: Optional[int] = None
    month_name: Optional[str] = None


class CategoryOut(ReportModel):
    id: int
    name: str
    icon: Optional[str] = None
    color: Optional[str] = None


class CategoryTotalOut(ReportModel):
    category: CategoryOut
    total: Money
    count: int
    average: Money
    min: Money
    max: Money


class DailyTotalOut(ReportModel):
    date: dt.date
    total: Money
    count: int


class TrendPointOut(ReportModel):
    year: int
    month: int
    label: str
    total: Money
    count: int


class MonthTotalOut(ReportModel):
    month: int
    month_name: str
    total: Money
    count: int


class ExpenseOut(ReportModel):
    id: int
    date: dt.date
    amount: Money
    description: str
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    category: CategoryOut


class IncomeOut(ReportModel):
    id: int
    title: str
    date: dt.date
    amount: Money
    source: IncomeSource
    is_recurring: bool
    recurring_frequency: Optional[RecurringFrequency] = None
    notes: Optional[str] = None


class PeriodSummary(ReportModel):
    total: Money
    expense_count: int
    average: Money
    min: Money
    max: Money
    budget: Optional[Money] = None
    budget_remaining: Optional[Money] = None
    budget_percentage: Optional[int] = None
    is_over_budget: Optional[bool] = None


class DashboardSummary(ReportModel):
    monthly_total: Money
    monthly_count: int
    monthly_average: Money
    monthly_budget: Optional[Money] = None
    budget_remaining: Optional[Money] = None
    budget_percentage: Optional[int] = None
    is_over_budget: Optional[bool] = None
    monthly_income: Optional[Money] = None
    net_savings: Optional[Money] = None
    total_all_time: Money
    expense_count: int


class DashboardReport(ReportModel):
    period: PeriodOut
    summary: DashboardSummary
    expenses_by_category: list[CategoryTotalOut]
    monthly_trend: list[TrendPointOut]
    recent_expenses: list[ExpenseOut]


class MonthComparison(ReportModel):
    previous_month: Money
    change: Money
    change_percentage: Optional[Percent] = None


class MonthlyReport(ReportModel):
    period: PeriodOut
    summary: PeriodSummary
    comparison: MonthComparison
    expenses_by_category: list[CategoryTotalOut]
    daily_breakdown: list[DailyTotalOut]


class WeeklyReport(ReportModel):
    period: PeriodOut
    summary: PeriodSummary
    expenses_by_category: list[CategoryTotalOut]
    daily_breakdown: list[DailyTotalOut]
    expenses: list[ExpenseOut]


class YearlyReport(ReportModel):
    year: int
    period: PeriodOut
    summary: PeriodSummary
    monthly_breakdown: list[MonthTotalOut]
    expenses_by_category: list[CategoryTotalOut]


class CategoryBudgetRow(ReportModel):
    category: CategoryOut
    total: Money
    count: int
    average: Money
    min: Money
    max: Money
    percentage: Optional[Percent] = None  # share of the period's total spend
    budget: Optional[Money] = None
    budget_remaining: Optional[Money] = None
    budget_percentage: Optional[int] = None
    is_over_budget: Optional[bool] = None


class CategoryOverviewReport(ReportModel):
    period: PeriodOut
    total_expenses: Money
    category_count: int
    categories: list[CategoryBudgetRow]


class CategorySpendReport(ReportModel):
    period: PeriodOut
    category: CategoryOut
    summary: PeriodSummary
    expenses: list[ExpenseOut]


class IncomeSourceTotal(ReportModel):
    source: IncomeSource
    total: Money
    count: int


class IncomeSummaryReport(ReportModel):
    period: PeriodOut
    total_income: Money
    income_count: int
    yearly_total: Money
    source_breakdown: list[IncomeSourceTotal]
    recent_incomes: list[IncomeOut]
