from decimal import Decimal

from aggregation import EMPTY_AGGREGATE, AggregateResult
from budgets import NO_BUDGET, change_percent, compare, compare_amounts, percent_of
from models import Budget


def test_missing_budget_leaves_every_field_empty() -> None:
    comparison = compare(AggregateResult(total_cents=5_000, count=1), None)
    assert comparison == NO_BUDGET
    assert comparison.budget_cents is None
    assert comparison.remaining_cents is None
    assert comparison.percentage is None
    assert comparison.is_over_budget is None
    assert not comparison.has_budget


def test_overspent_budget() -> None:
    budget = Budget(user_id=1, year=2026, month=5, amount_cents=100_000)
    comparison = compare(AggregateResult(total_cents=120_000, count=3), budget)
    assert comparison.budget_cents == 100_000
    assert comparison.remaining_cents == -20_000
    assert comparison.percentage == 120
    assert comparison.is_over_budget is True


def test_spending_exactly_the_budget_is_not_over() -> None:
    comparison = compare_amounts(50_000, 50_000)
    assert comparison.remaining_cents == 0
    assert comparison.percentage == 100
    assert comparison.is_over_budget is False


def test_empty_month_against_budget() -> None:
    budget = Budget(user_id=1, year=2026, month=5, amount_cents=40_000)
    comparison = compare(EMPTY_AGGREGATE, budget)
    assert comparison.remaining_cents == 40_000
    assert comparison.percentage == 0
    assert comparison.is_over_budget is False


def test_zero_budget_has_no_percentage_and_is_never_over() -> None:
    comparison = compare_amounts(2_500, 0)
    assert comparison.has_budget
    assert comparison.budget_cents == 0
    assert comparison.remaining_cents == -2_500
    assert comparison.percentage is None
    assert comparison.is_over_budget is False


def test_percentage_rounds_half_up() -> None:
    assert compare_amounts(125, 1_000).percentage == 13
    assert compare_amounts(124, 1_000).percentage == 12
    assert compare_amounts(1, 3).percentage == 33


def test_percent_of() -> None:
    assert percent_of(1, 8, places=1) == Decimal("12.5")
    assert percent_of(2, 3, places=1) == Decimal("66.7")
    assert percent_of(5, 0) is None


def test_change_percent() -> None:
    assert change_percent(15_000, 10_000) == Decimal("50.0")
    assert change_percent(5_000, 10_000) == Decimal("-50.0")
    assert change_percent(10_000, 0) is None
    assert change_percent(0, 0) is None
