"""Dashboard aggregates for one owner."""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from ..clock import Clock, SystemClock
from ..domain.repositories.ledger import CategoryGroup, LedgerQuery, LedgerReader
from ..models.category import Category
from ..models.transaction import EXPENSE, INCOME, Transaction

RECENT_LIMIT = 5


@dataclass
class CategorySummary:
    category: Optional[Category]
    total: Decimal
    count: int
    type: str


@dataclass
class DashboardData:
    current_balance: Decimal
    monthly_income: Decimal
    monthly_expenses: Decimal
    monthly_net: Decimal
    category_summary: list[CategorySummary] = field(default_factory=list)
    recent_transactions: list[Transaction] = field(default_factory=list)
    has_transactions: bool = False

    def as_dict(self) -> dict[str, object]:
        return {
            "current_balance": self.current_balance,
            "monthly_income": self.monthly_income,
            "monthly_expenses": self.monthly_expenses,
            "monthly_net": self.monthly_net,
            "category_summary": [
                {
                    "category": row.category.name if row.category else None,
                    "total": row.total,
                    "count": row.count,
                    "type": row.type,
                }
                for row in self.category_summary
            ],
            "recent_transactions": [txn.id for txn in self.recent_transactions],
            "has_transactions": self.has_transactions,
        }


def month_bounds(day: date) -> tuple[date, date]:
    """First and last calendar day of the month containing ``day``."""
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def _summary_type(group: CategoryGroup) -> str:
    if group.category is not None:
        return group.category.category_type
    # Uncategorized rows carry no category type of their own
    if len(group.types) == 1:
        return next(iter(group.types))
    return "mixed"


def summarize_categories(groups: list[CategoryGroup]) -> list[CategorySummary]:
    """Turn category groups into summary rows sorted by total, largest first."""
    rows = [
        CategorySummary(
            category=group.category,
            total=group.total,
            count=group.count,
            type=_summary_type(group),
        )
        for group in groups
    ]
    rows.sort(key=lambda row: row.total, reverse=True)
    return rows


def build_dashboard(
    *,
    ledger: LedgerReader,
    owner_id: int,
    clock: Clock | None = None,
    recent_limit: int = RECENT_LIMIT,
) -> DashboardData:
    """Lifetime balance, current-month totals and the latest transactions."""

    clock = clock or SystemClock()
    lifetime = ledger.sum_by_type(LedgerQuery(user_id=owner_id))
    current_balance = lifetime[INCOME] - lifetime[EXPENSE]

    start, end = month_bounds(clock.today())
    month_query = LedgerQuery(user_id=owner_id, start_date=start, end_date=end)
    monthly = ledger.sum_by_type(month_query)
    monthly_income = monthly[INCOME]
    monthly_expenses = monthly[EXPENSE]

    return DashboardData(
        current_balance=current_balance,
        monthly_income=monthly_income,
        monthly_expenses=monthly_expenses,
        monthly_net=monthly_income - monthly_expenses,
        category_summary=summarize_categories(ledger.group_by_category(month_query)),
        recent_transactions=ledger.transactions(LedgerQuery(user_id=owner_id), limit=recent_limit),
        has_transactions=ledger.has_transactions(owner_id),
    )
