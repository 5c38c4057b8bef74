"""Pure aggregation over expense rows.

Every function here works on already-loaded rows (anything exposing
``amount_cents``, ``date`` and ``category_id``), so the same code serves one
month, a trailing window that was read in a single query, or a whole year.
Amounts stay in integer cents throughout.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, Optional, Sequence

from models import Category, Expense, Income, IncomeSource
from periods import Period


@dataclass(frozen=True)
class CategoryInfo:
    id: int
    name: str
    icon: Optional[str] = None
    color: Optional[str] = None


@dataclass(frozen=True)
class CategoryTotal:
    category: CategoryInfo
    total_cents: int
    count: int
    average_cents: int
    min_cents: int
    max_cents: int


@dataclass(frozen=True)
class AggregateResult:
    total_cents: int = 0
    count: int = 0
    average_cents: int = 0
    min_cents: int = 0
    max_cents: int = 0
    by_category: tuple[CategoryTotal, ...] = ()


@dataclass(frozen=True)
class DailyTotal:
    date: date
    total_cents: int
    count: int


@dataclass(frozen=True)
class SourceTotal:
    source: IncomeSource
    total_cents: int
    count: int


EMPTY_AGGREGATE = AggregateResult()


def category_index(categories: Iterable[Category]) -> dict[int, CategoryInfo]:
    return {
        c.id: CategoryInfo(id=c.id, name=c.name, icon=c.icon, color=c.color)
        for c in categories
    }


def lookup_category(
    categories: Optional[Mapping[int, CategoryInfo]], category_id: int
) -> CategoryInfo:
    info = categories.get(category_id) if categories else None
    return info or CategoryInfo(id=category_id, name="Uncategorized")


def average_cents(total_cents: int, count: int) -> int:
    if count == 0:
        return 0
    avg = (Decimal(total_cents) / Decimal(count)).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )
    return int(avg)


def filter_expenses(
    expenses: Iterable[Expense],
    period: Optional[Period] = None,
    *,
    category_id: Optional[int] = None,
) -> list[Expense]:
    return [
        e
        for e in expenses
        if (period is None or period.contains(e.date))
        and (category_id is None or e.category_id == category_id)
    ]


def _stats(amounts: Sequence[int]) -> tuple[int, int, int, int, int]:
    if not amounts:
        return 0, 0, 0, 0, 0
    total = sum(amounts)
    count = len(amounts)
    return total, count, average_cents(total, count), min(amounts), max(amounts)


def group_by_category(
    expenses: Iterable[Expense],
    categories: Optional[Mapping[int, CategoryInfo]] = None,
) -> list[CategoryTotal]:
    """Per-category totals, largest total first, ties by category id."""
    amounts_by_category: dict[int, list[int]] = {}
    for expense in expenses:
        amounts_by_category.setdefault(expense.category_id, []).append(
            expense.amount_cents
        )

    groups: list[CategoryTotal] = []
    for category_id, amounts in amounts_by_category.items():
        total, count, avg, low, high = _stats(amounts)
        info = lookup_category(categories, category_id)
        groups.append(
            CategoryTotal(
                category=info,
                total_cents=total,
                count=count,
                average_cents=avg,
                min_cents=low,
                max_cents=high,
            )
        )
    groups.sort(key=lambda g: (-g.total_cents, g.category.id))
    return groups


def aggregate(
    expenses: Iterable[Expense],
    period: Optional[Period] = None,
    *,
    category_id: Optional[int] = None,
    categories: Optional[Mapping[int, CategoryInfo]] = None,
) -> AggregateResult:
    matching = filter_expenses(expenses, period, category_id=category_id)
    if not matching:
        return EMPTY_AGGREGATE
    total, count, avg, low, high = _stats([e.amount_cents for e in matching])
    return AggregateResult(
        total_cents=total,
        count=count,
        average_cents=avg,
        min_cents=low,
        max_cents=high,
        by_category=tuple(group_by_category(matching, categories)),
    )


def daily_breakdown(
    expenses: Iterable[Expense], period: Optional[Period] = None
) -> list[DailyTotal]:
    """Totals per calendar day, ascending. Days without expenses are omitted."""
    by_day: dict[date, list[int]] = {}
    for expense in filter_expenses(expenses, period):
        by_day.setdefault(expense.date, []).append(expense.amount_cents)
    return [
        DailyTotal(date=day, total_cents=sum(amounts), count=len(amounts))
        for day, amounts in sorted(by_day.items())
    ]


def group_incomes_by_source(incomes: Iterable[Income]) -> list[SourceTotal]:
    totals: dict[IncomeSource, list[int]] = {}
    for income in incomes:
        totals.setdefault(income.source, []).append(income.amount_cents)
    groups = [
        SourceTotal(source=source, total_cents=sum(amounts), count=len(amounts))
        for source, amounts in totals.items()
    ]
    groups.sort(key=lambda g: (-g.total_cents, g.source.value))
    return groups
