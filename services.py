from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime
from typing import Iterable, Iterator, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.orm import Session

from aggregation import (
    EMPTY_AGGREGATE,
    AggregateResult,
    CategoryInfo,
    CategoryTotal,
    DailyTotal,
    aggregate,
    category_index,
    daily_breakdown,
    filter_expenses,
    group_incomes_by_source,
    lookup_category,
)
from budgets import (
    NO_BUDGET,
    BudgetComparison,
    change_percent,
    compare,
    compare_amounts,
    percent_of,
)
from config import get_settings
from models import Expense, Income
from periods import (
    InvalidPeriod,
    Period,
    month_name,
    previous_period,
    resolve_month,
    resolve_week,
    resolve_year,
)
from repository import ReportRepository
from schemas import (
    CategoryBudgetRow,
    CategoryOut,
    CategoryOverviewReport,
    CategorySpendReport,
    CategoryTotalOut,
    DailyTotalOut,
    DashboardReport,
    DashboardSummary,
    ExpenseOut,
    IncomeOut,
    IncomeSourceTotal,
    IncomeSummaryReport,
    MonthComparison,
    MonthTotalOut,
    MonthlyReport,
    PeriodOut,
    PeriodSummary,
    TrendPointOut,
    WeeklyReport,
    YearlyReport,
    cents_to_amount,
    optional_amount,
)
from trends import (
    TrendPoint,
    build_monthly_trend,
    build_yearly_breakdown,
    trend_window,
)

logger = logging.getLogger(__name__)


class ReportUnavailable(RuntimeError):
    """A report could not be computed; ``step`` names the part that failed."""

    def __init__(self, step: str) -> None:
        super().__init__(f"Report unavailable: {step} failed")
        self.step = step


class CategoryNotFound(LookupError):
    pass


def get_current_user_id() -> int:
    return get_settings().default_user_id


def local_today() -> date:
    timezone = get_settings().timezone
    try:
        tz = ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        logger.exception(f"timezone_invalid: timezone={timezone}")
        raise ReportUnavailable("resolve_today") from exc
    return datetime.now(tz).date()


def _period_out(period: Period) -> PeriodOut:
    if period.kind == "month":
        return PeriodOut(
            label=period.label,
            start_date=period.start,
            end_date=period.last_day,
            year=period.start.year,
            month=period.start.month,
            month_name=month_name(period.start.month),
        )
    if period.kind == "year":
        return PeriodOut(
            label=period.label,
            start_date=period.start,
            end_date=period.last_day,
            year=period.start.year,
        )
    return PeriodOut(
        label=period.label, start_date=period.start, end_date=period.last_day
    )


def _category_out(info: CategoryInfo) -> CategoryOut:
    return CategoryOut(id=info.id, name=info.name, icon=info.icon, color=info.color)


def _category_totals_out(groups: Iterable[CategoryTotal]) -> list[CategoryTotalOut]:
    return [
        CategoryTotalOut(
            category=_category_out(g.category),
            total=cents_to_amount(g.total_cents),
            count=g.count,
            average=cents_to_amount(g.average_cents),
            min=cents_to_amount(g.min_cents),
            max=cents_to_amount(g.max_cents),
        )
        for g in groups
    ]


def _daily_out(rows: Iterable[DailyTotal]) -> list[DailyTotalOut]:
    return [
        DailyTotalOut(date=r.date, total=cents_to_amount(r.total_cents), count=r.count)
        for r in rows
    ]


def _trend_out(points: Iterable[TrendPoint]) -> list[TrendPointOut]:
    return [
        TrendPointOut(
            year=p.year,
            month=p.month,
            label=p.label,
            total=cents_to_amount(p.total_cents),
            count=p.count,
        )
        for p in points
    ]


def _expense_out(
    expense: Expense, categories: Mapping[int, CategoryInfo]
) -> ExpenseOut:
    return ExpenseOut(
        id=expense.id,
        date=expense.date,
        amount=cents_to_amount(expense.amount_cents),
        description=expense.description,
        payment_method=expense.payment_method,
        notes=expense.notes,
        category=_category_out(lookup_category(categories, expense.category_id)),
    )


def _income_out(income: Income) -> IncomeOut:
    return IncomeOut(
        id=income.id,
        title=income.title,
        date=income.date,
        amount=cents_to_amount(income.amount_cents),
        source=income.source,
        is_recurring=income.is_recurring,
        recurring_frequency=income.recurring_frequency,
        notes=income.notes,
    )


def _summary(
    result: AggregateResult, comparison: BudgetComparison = NO_BUDGET
) -> PeriodSummary:
    return PeriodSummary(
        total=cents_to_amount(result.total_cents),
        expense_count=result.count,
        average=cents_to_amount(result.average_cents),
        min=cents_to_amount(result.min_cents),
        max=cents_to_amount(result.max_cents),
        budget=optional_amount(comparison.budget_cents),
        budget_remaining=optional_amount(comparison.remaining_cents),
        budget_percentage=comparison.percentage,
        is_over_budget=comparison.is_over_budget,
    )


class ReportService:
    """Builds the named reports for one user.

    Each collaborator read happens once per report; the pure aggregation,
    budget and trend helpers then work on the loaded rows. Every read and
    computation runs as a named step so a failure surfaces as
    ``ReportUnavailable`` carrying that step's name.
    """

    def __init__(
        self,
        session: Session,
        user_id: Optional[int] = None,
        *,
        repository: Optional[ReportRepository] = None,
    ) -> None:
        settings = get_settings()
        self.session = session
        self.user_id = get_current_user_id() if user_id is None else user_id
        self.repository = repository or ReportRepository(session, self.user_id)
        self.trend_months = settings.trend_months
        self.recent_limit = settings.recent_limit

    @contextmanager
    def _step(self, name: str) -> Iterator[None]:
        try:
            yield
        except (InvalidPeriod, CategoryNotFound, ReportUnavailable):
            raise
        except Exception as exc:
            logger.exception(f"report_step_failed: step={name} user_id={self.user_id}")
            raise ReportUnavailable(name) from exc

    def _categories(self) -> dict[int, CategoryInfo]:
        with self._step("load_categories"):
            return category_index(self.repository.list_categories())

    def _expenses(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        category_id: Optional[int] = None,
    ) -> list[Expense]:
        with self._step("load_expenses"):
            return self.repository.list_expenses(start, end, category_id)

    def aggregate(
        self, period: Period, category_id: Optional[int] = None
    ) -> AggregateResult:
        expenses = self._expenses(period.start, period.end, category_id)
        categories = self._categories()
        with self._step("aggregate"):
            return aggregate(
                expenses, period, category_id=category_id, categories=categories
            )

    def build_monthly_trend(
        self, ending_year: int, ending_month: int, window_size: Optional[int] = None
    ) -> list[TrendPoint]:
        if window_size is None:
            window_size = self.trend_months
        window = trend_window(ending_year, ending_month, window_size)
        expenses = self._expenses(window.start, window.end)
        with self._step("build_trend"):
            return build_monthly_trend(
                expenses, ending_year, ending_month, window_size
            )

    def build_daily_breakdown(self, period: Period) -> list[DailyTotal]:
        expenses = self._expenses(period.start, period.end)
        with self._step("daily_breakdown"):
            return daily_breakdown(expenses, period)

    def dashboard(self, today: Optional[date] = None) -> DashboardReport:
        today = today or local_today()
        period = resolve_month(today.year, today.month)
        window = trend_window(today.year, today.month, self.trend_months)

        expenses = self._expenses(window.start, window.end)
        categories = self._categories()
        with self._step("load_budget"):
            budget = self.repository.find_budget(today.month, today.year)
        with self._step("load_incomes"):
            incomes = self.repository.list_incomes(period.start, period.end)
        with self._step("load_recent_expenses"):
            recent = self.repository.recent_expenses(self.recent_limit)
        with self._step("load_expense_totals"):
            total_all_time, count_all_time = self.repository.expense_totals()

        with self._step("aggregate"):
            current = aggregate(expenses, period, categories=categories)
        with self._step("compare_budget"):
            comparison = compare(current, budget)
        with self._step("build_trend"):
            trend = build_monthly_trend(
                expenses, today.year, today.month, self.trend_months
            )

        income_cents = sum(i.amount_cents for i in incomes) if incomes else None
        savings_cents = (
            income_cents - current.total_cents if income_cents is not None else None
        )

        logger.info(
            f"report_built: report=dashboard user_id={self.user_id} "
            f"period={period.label} expenses={current.count}"
        )
        with self._step("assemble"):
            return DashboardReport(
                period=_period_out(period),
                summary=DashboardSummary(
                    monthly_total=cents_to_amount(current.total_cents),
                    monthly_count=current.count,
                    monthly_average=cents_to_amount(current.average_cents),
                    monthly_budget=optional_amount(comparison.budget_cents),
                    budget_remaining=optional_amount(comparison.remaining_cents),
                    budget_percentage=comparison.percentage,
                    is_over_budget=comparison.is_over_budget,
                    monthly_income=optional_amount(income_cents),
                    net_savings=optional_amount(savings_cents),
                    total_all_time=cents_to_amount(total_all_time),
                    expense_count=count_all_time,
                ),
                expenses_by_category=_category_totals_out(current.by_category),
                monthly_trend=_trend_out(trend),
                recent_expenses=[_expense_out(e, categories) for e in recent],
            )

    def monthly(self, year: int, month: int) -> MonthlyReport:
        period = resolve_month(year, month)
        try:
            previous: Optional[Period] = previous_period(period)
        except InvalidPeriod:
            # January of year 1 has no month before it
            previous = None
        first_day = previous.start if previous is not None else period.start

        # one read covers both the month and the month before it
        expenses = self._expenses(first_day, period.end)
        categories = self._categories()
        with self._step("load_budget"):
            budget = self.repository.find_budget(month, year)

        with self._step("aggregate"):
            current = aggregate(expenses, period, categories=categories)
            before = (
                aggregate(expenses, previous)
                if previous is not None
                else EMPTY_AGGREGATE
            )
        with self._step("compare_budget"):
            comparison = compare(current, budget)
        with self._step("daily_breakdown"):
            daily = daily_breakdown(expenses, period)

        change = current.total_cents - before.total_cents
        logger.info(
            f"report_built: report=monthly user_id={self.user_id} "
            f"period={period.label} expenses={current.count}"
        )
        with self._step("assemble"):
            return MonthlyReport(
                period=_period_out(period),
                summary=_summary(current, comparison),
                comparison=MonthComparison(
                    previous_month=cents_to_amount(before.total_cents),
                    change=cents_to_amount(change),
                    change_percentage=change_percent(
                        current.total_cents, before.total_cents
                    ),
                ),
                expenses_by_category=_category_totals_out(current.by_category),
                daily_breakdown=_daily_out(daily),
            )

    def weekly(self, anchor: Optional[date] = None) -> WeeklyReport:
        period = resolve_week(anchor or local_today())

        expenses = self._expenses(period.start, period.end)
        categories = self._categories()
        with self._step("aggregate"):
            current = aggregate(expenses, period, categories=categories)
        with self._step("daily_breakdown"):
            daily = daily_breakdown(expenses, period)

        logger.info(
            f"report_built: report=weekly user_id={self.user_id} "
            f"period={period.label} expenses={current.count}"
        )
        with self._step("assemble"):
            return WeeklyReport(
                period=_period_out(period),
                summary=_summary(current),
                expenses_by_category=_category_totals_out(current.by_category),
                daily_breakdown=_daily_out(daily),
                expenses=[
                    _expense_out(e, categories)
                    for e in filter_expenses(expenses, period)
                ],
            )

    def yearly(self, year: int) -> YearlyReport:
        period = resolve_year(year)

        expenses = self._expenses(period.start, period.end)
        categories = self._categories()
        with self._step("aggregate"):
            current = aggregate(expenses, period, categories=categories)
        with self._step("build_trend"):
            months = build_yearly_breakdown(expenses, year)

        logger.info(
            f"report_built: report=yearly user_id={self.user_id} "
            f"period={period.label} expenses={current.count}"
        )
        with self._step("assemble"):
            return YearlyReport(
                year=year,
                period=_period_out(period),
                summary=_summary(current),
                monthly_breakdown=[
                    MonthTotalOut(
                        month=m.month,
                        month_name=month_name(m.month),
                        total=cents_to_amount(m.total_cents),
                        count=m.count,
                    )
                    for m in months
                ],
                expenses_by_category=_category_totals_out(current.by_category),
            )

    def category_detail(
        self, year: int, month: int, category_id: Optional[int] = None
    ) -> CategorySpendReport | CategoryOverviewReport:
        period = resolve_month(year, month)
        categories = self._categories()

        if category_id is not None:
            if category_id not in categories:
                raise CategoryNotFound(f"Category {category_id} not found")
            expenses = self._expenses(period.start, period.end, category_id)
            with self._step("load_budget"):
                budget = self.repository.find_budget(month, year, category_id)
            with self._step("aggregate"):
                current = aggregate(
                    expenses, period, category_id=category_id, categories=categories
                )
            with self._step("compare_budget"):
                comparison = compare(current, budget)
            logger.info(
                f"report_built: report=category user_id={self.user_id} "
                f"period={period.label} category_id={category_id} "
                f"expenses={current.count}"
            )
            with self._step("assemble"):
                return CategorySpendReport(
                    period=_period_out(period),
                    category=_category_out(categories[category_id]),
                    summary=_summary(current, comparison),
                    expenses=[_expense_out(e, categories) for e in expenses],
                )

        expenses = self._expenses(period.start, period.end)
        with self._step("load_category_budgets"):
            budgets = {
                b.category_id: b.amount_cents
                for b in self.repository.list_category_budgets(month, year)
            }
        with self._step("aggregate"):
            current = aggregate(expenses, period, categories=categories)
        with self._step("compare_budget"):
            rows: list[CategoryBudgetRow] = []
            for group in current.by_category:
                comparison = compare_amounts(
                    group.total_cents, budgets.get(group.category.id)
                )
                rows.append(
                    CategoryBudgetRow(
                        category=_category_out(group.category),
                        total=cents_to_amount(group.total_cents),
                        count=group.count,
                        average=cents_to_amount(group.average_cents),
                        min=cents_to_amount(group.min_cents),
                        max=cents_to_amount(group.max_cents),
                        percentage=percent_of(
                            group.total_cents, current.total_cents, places=1
                        ),
                        budget=optional_amount(comparison.budget_cents),
                        budget_remaining=optional_amount(comparison.remaining_cents),
                        budget_percentage=comparison.percentage,
                        is_over_budget=comparison.is_over_budget,
                    )
                )

        logger.info(
            f"report_built: report=category user_id={self.user_id} "
            f"period={period.label} categories={len(rows)}"
        )
        with self._step("assemble"):
            return CategoryOverviewReport(
                period=_period_out(period),
                total_expenses=cents_to_amount(current.total_cents),
                category_count=len(rows),
                categories=rows,
            )

    def income_summary(self, year: int, month: int) -> IncomeSummaryReport:
        period = resolve_month(year, month)
        year_period = resolve_year(year)

        with self._step("load_incomes"):
            incomes = self.repository.list_incomes(year_period.start, year_period.end)
        with self._step("aggregate"):
            month_incomes = [i for i in incomes if period.contains(i.date)]
            sources = group_incomes_by_source(month_incomes)

        logger.info(
            f"report_built: report=income user_id={self.user_id} "
            f"period={period.label} incomes={len(month_incomes)}"
        )
        with self._step("assemble"):
            return IncomeSummaryReport(
                period=_period_out(period),
                total_income=cents_to_amount(
                    sum(i.amount_cents for i in month_incomes)
                ),
                income_count=len(month_incomes),
                yearly_total=cents_to_amount(sum(i.amount_cents for i in incomes)),
                source_breakdown=[
                    IncomeSourceTotal(
                        source=s.source,
                        total=cents_to_amount(s.total_cents),
                        count=s.count,
                    )
                    for s in sources
                ],
                recent_incomes=[
                    _income_out(i) for i in month_incomes[: self.recent_limit]
                ],
            )
