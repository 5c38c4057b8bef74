from datetime import date
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from models import Budget, Category, Expense, Income

DEFAULT_CATEGORIES = [
    ("Food & Dining", "🍕", "#ef4444"),
    ("Transportation", "🚗", "#f97316"),
    ("Shopping", "🛒", "#eab308"),
    ("Entertainment", "🎬", "#22c55e"),
    ("Bills & Utilities", "💡", "#3b82f6"),
    ("Healthcare", "🏥", "#8b5cf6"),
    ("Education", "📚", "#ec4899"),
    ("Travel", "✈️", "#06b6d4"),
    ("Other", "📦", "#6b7280"),
]


def ensure_default_categories(session: Session) -> int:
    existing = set(
        session.scalars(select(Category.name).where(Category.user_id.is_(None))).all()
    )
    created = 0
    for name, icon, color in DEFAULT_CATEGORIES:
        if name in existing:
            continue
        session.add(
            Category(user_id=None, name=name, icon=icon, color=color, is_default=True)
        )
        created += 1
    session.flush()
    return created


class ReportRepository:
    """Read-only access to one user's expenses, incomes, budgets and categories.

    Date bounds are half-open: ``date_from`` is inclusive, ``date_to`` exclusive.
    """

    def __init__(self, session: Session, user_id: int) -> None:
        self.session = session
        self.user_id = user_id

    def list_expenses(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category_id: Optional[int] = None,
    ) -> list[Expense]:
        stmt = select(Expense).where(Expense.user_id == self.user_id)
        if date_from is not None:
            stmt = stmt.where(Expense.date >= date_from)
        if date_to is not None:
            stmt = stmt.where(Expense.date < date_to)
        if category_id is not None:
            stmt = stmt.where(Expense.category_id == category_id)
        stmt = stmt.order_by(
            Expense.date.desc(), Expense.created_at.desc(), Expense.id.desc()
        )
        return list(self.session.scalars(stmt).all())

    def list_incomes(
        self, date_from: Optional[date] = None, date_to: Optional[date] = None
    ) -> list[Income]:
        stmt = select(Income).where(Income.user_id == self.user_id)
        if date_from is not None:
            stmt = stmt.where(Income.date >= date_from)
        if date_to is not None:
            stmt = stmt.where(Income.date < date_to)
        stmt = stmt.order_by(
            Income.date.desc(), Income.created_at.desc(), Income.id.desc()
        )
        return list(self.session.scalars(stmt).all())

    def find_budget(
        self, month: int, year: int, category_id: Optional[int] = None
    ) -> Optional[Budget]:
        return self.session.scalar(
            select(Budget).where(
                Budget.user_id == self.user_id,
                Budget.month == month,
                Budget.year == year,
                Budget.category_id.is_(None)
                if category_id is None
                else Budget.category_id == category_id,
            )
        )

    def list_category_budgets(self, month: int, year: int) -> list[Budget]:
        stmt = (
            select(Budget)
            .where(
                Budget.user_id == self.user_id,
                Budget.month == month,
                Budget.year == year,
                Budget.category_id.is_not(None),
            )
            .order_by(Budget.category_id)
        )
        return list(self.session.scalars(stmt).all())

    def list_categories(self) -> list[Category]:
        """User-owned categories plus the global defaults."""
        stmt = (
            select(Category)
            .where(or_(Category.user_id == self.user_id, Category.user_id.is_(None)))
            .order_by(Category.id)
        )
        return list(self.session.scalars(stmt).all())

    def recent_expenses(self, limit: int) -> list[Expense]:
        stmt = (
            select(Expense)
            .where(Expense.user_id == self.user_id)
            .order_by(
                Expense.date.desc(), Expense.created_at.desc(), Expense.id.desc()
            )
            .limit(limit)
        )
        return list(self.session.scalars(stmt).all())

    def expense_totals(self) -> tuple[int, int]:
        row = self.session.execute(
            select(
                func.coalesce(func.sum(Expense.amount_cents), 0).label("total"),
                func.count(Expense.id).label("count"),
            ).where(Expense.user_id == self.user_id)
        ).one()
        return int(row.total or 0), int(row.count or 0)
