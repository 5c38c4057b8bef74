from dataclasses import dataclass
from typing import Iterable, Sequence

from aggregation import DailyTotal, aggregate, daily_breakdown
from models import Expense
from periods import InvalidPeriod, Period, add_months, resolve_month, resolve_year


@dataclass(frozen=True)
class TrendPoint:
    year: int
    month: int
    total_cents: int
    count: int

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class MonthTotal:
    month: int
    total_cents: int
    count: int


def trend_months(
    ending_year: int, ending_month: int, window_size: int
) -> list[tuple[int, int]]:
    """(year, month) pairs of the window, oldest first, ending with the given month.

    Near the start of the calendar the leading pairs can fall before year 1.
    """
    if window_size < 1:
        raise InvalidPeriod(f"Trend window must be at least 1 month, got {window_size}")
    resolve_month(ending_year, ending_month)
    return [
        add_months(ending_year, ending_month, -offset)
        for offset in range(window_size - 1, -1, -1)
    ]


def trend_window(ending_year: int, ending_month: int, window_size: int = 6) -> Period:
    months = [
        (year, month)
        for year, month in trend_months(ending_year, ending_month, window_size)
        if year >= 1
    ]
    first, last = resolve_month(*months[0]), resolve_month(*months[-1])
    return Period("window", first.start, last.end, f"{first.label}..{last.label}")


def build_monthly_trend(
    expenses: Iterable[Expense],
    ending_year: int,
    ending_month: int,
    window_size: int = 6,
) -> list[TrendPoint]:
    rows = list(expenses)
    points: list[TrendPoint] = []
    for year, month in trend_months(ending_year, ending_month, window_size):
        if year < 1:
            # no calendar dates exist before year 1
            points.append(TrendPoint(year=year, month=month, total_cents=0, count=0))
            continue
        result = aggregate(rows, resolve_month(year, month))
        points.append(
            TrendPoint(
                year=year,
                month=month,
                total_cents=result.total_cents,
                count=result.count,
            )
        )
    return points


def build_daily_breakdown(
    expenses: Iterable[Expense], period: Period
) -> list[DailyTotal]:
    return daily_breakdown(expenses, period)


def build_yearly_breakdown(expenses: Sequence[Expense], year: int) -> list[MonthTotal]:
    resolve_year(year)
    breakdown: list[MonthTotal] = []
    for month in range(1, 13):
        result = aggregate(expenses, resolve_month(year, month))
        breakdown.append(
            MonthTotal(month=month, total_cents=result.total_cents, count=result.count)
        )
    return breakdown
