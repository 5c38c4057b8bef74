from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from aggregation import AggregateResult
from models import Budget


@dataclass(frozen=True)
class BudgetComparison:
    """Spend measured against a budget.

    All fields are ``None`` when no budget exists, which keeps "no budget set"
    distinct from a budget of zero.
    """

    budget_cents: Optional[int] = None
    remaining_cents: Optional[int] = None
    percentage: Optional[int] = None
    is_over_budget: Optional[bool] = None

    @property
    def has_budget(self) -> bool:
        return self.budget_cents is not None


NO_BUDGET = BudgetComparison()


def percent_of(part: int, whole: int, places: int = 0) -> Optional[Decimal]:
    """``part / whole * 100`` rounded half-up, or ``None`` for a zero ``whole``."""
    if whole == 0:
        return None
    exponent = Decimal(1).scaleb(-places)
    return (Decimal(part) * 100 / Decimal(whole)).quantize(
        exponent, rounding=ROUND_HALF_UP
    )


def change_percent(current: int, previous: int) -> Optional[Decimal]:
    return percent_of(current - previous, previous, places=1)


def compare_amounts(spent_cents: int, budget_cents: Optional[int]) -> BudgetComparison:
    if budget_cents is None:
        return NO_BUDGET
    percentage = percent_of(spent_cents, budget_cents)
    return BudgetComparison(
        budget_cents=budget_cents,
        remaining_cents=budget_cents - spent_cents,
        percentage=int(percentage) if percentage is not None else None,
        # zero budgets never report over-budget
        is_over_budget=budget_cents > 0 and spent_cents > budget_cents,
    )


def compare(aggregate: AggregateResult, budget: Optional[Budget]) -> BudgetComparison:
    return compare_amounts(
        aggregate.total_cents, budget.amount_cents if budget is not None else None
    )
