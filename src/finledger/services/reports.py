"""Filtered financial reports.

``build_report`` produces a ``ReportBundle``: the filtered transactions plus
every total an exporter needs, so exporters never query the ledger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..domain.repositories.ledger import LedgerQuery, LedgerReader
from ..errors import OwnershipViolation
from ..models.category import Category
from ..models.transaction import EXPENSE, INCOME, TRANSACTION_TYPES, Transaction

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
CENTS = Decimal("0.01")
DATE_FORMAT = "%d/%m/%Y"


@dataclass(frozen=True)
class ReportFilters:
    """Optional report predicates; unknown transaction types are ignored."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    category_id: Optional[int] = None
    txn_type: Optional[str] = None

    @property
    def effective_type(self) -> Optional[str]:
        return self.txn_type if self.txn_type in TRANSACTION_TYPES else None

    def as_dict(self) -> dict[str, object]:
        return {
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "category_id": self.category_id,
            "type": self.effective_type,
        }


@dataclass
class Totals:
    income: Decimal = ZERO
    expenses: Decimal = ZERO
    count: int = 0

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses


@dataclass
class CategoryTotal:
    category: Optional[Category]
    income: Decimal
    expenses: Decimal
    count: int

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses

    @property
    def total(self) -> Decimal:
        return self.income + self.expenses

    @property
    def name(self) -> str:
        return self.category.name if self.category else "Uncategorized"


@dataclass
class TypeTotal:
    total: Decimal
    count: int
    average: Decimal


@dataclass
class ReportBundle:
    transactions: list[Transaction]
    totals: Totals
    category_totals: list[CategoryTotal]
    type_totals: dict[str, TypeTotal]
    period: str
    filters: ReportFilters = field(default_factory=ReportFilters)

    @property
    def has_data(self) -> bool:
        return bool(self.transactions)


def period_label(filters: ReportFilters) -> str:
    """Describe the date range covered by ``filters``."""
    start, end = filters.start_date, filters.end_date
    if start and end:
        return f"{start.strftime(DATE_FORMAT)} - {end.strftime(DATE_FORMAT)}"
    if start:
        return f"From {start.strftime(DATE_FORMAT)}"
    if end:
        return f"Until {end.strftime(DATE_FORMAT)}"
    return "All periods"


def compute_totals(transactions: list[Transaction]) -> Totals:
    totals = Totals(count=len(transactions))
    for txn in transactions:
        if txn.txn_type == INCOME:
            totals.income += Decimal(txn.amount)
        else:
            totals.expenses += Decimal(txn.amount)
    return totals


def compute_category_totals(transactions: list[Transaction]) -> list[CategoryTotal]:
    """Per-category income/expense split, largest combined total first."""
    grouped: dict[Optional[int], CategoryTotal] = {}
    for txn in transactions:
        row = grouped.get(txn.category_id)
        if row is None:
            row = CategoryTotal(category=txn.category, income=ZERO, expenses=ZERO, count=0)
            grouped[txn.category_id] = row
        if txn.txn_type == INCOME:
            row.income += Decimal(txn.amount)
        else:
            row.expenses += Decimal(txn.amount)
        row.count += 1
    return sorted(grouped.values(), key=lambda row: row.total, reverse=True)


def compute_type_totals(transactions: list[Transaction]) -> dict[str, TypeTotal]:
    result: dict[str, TypeTotal] = {}
    for txn_type in (INCOME, EXPENSE):
        amounts = [Decimal(t.amount) for t in transactions if t.txn_type == txn_type]
        total = sum(amounts, ZERO)
        average = (total / len(amounts)).quantize(CENTS, rounding=ROUND_HALF_UP) if amounts else ZERO
        result[txn_type] = TypeTotal(total=total, count=len(amounts), average=average)
    return result


def build_report(
    *,
    ledger: LedgerReader,
    owner_id: int,
    filters: ReportFilters | None = None,
) -> ReportBundle:
    """Filter the owner's ledger and aggregate it for display and export."""

    filters = filters or ReportFilters()
    if filters.category_id is not None:
        category = ledger.get_category(filters.category_id)
        if category is not None and category.user_id != owner_id:
            logger.warning(f"Rejected report on category {filters.category_id} for user {owner_id}")
            raise OwnershipViolation("category", filters.category_id, owner_id)

    transactions = ledger.transactions(
        LedgerQuery(
            user_id=owner_id,
            start_date=filters.start_date,
            end_date=filters.end_date,
            category_id=filters.category_id,
            txn_type=filters.effective_type,
        )
    )
    logger.info(f"Report built with {len(transactions)} transaction(s) for user {owner_id}")
    return ReportBundle(
        transactions=transactions,
        totals=compute_totals(transactions),
        category_totals=compute_category_totals(transactions),
        type_totals=compute_type_totals(transactions),
        period=period_label(filters),
        filters=filters,
    )


def report_as_dict(report: ReportBundle) -> dict[str, object]:
    """Plain-data view of a report for templates and JSON output."""
    return {
        "transactions": [
            {
                "id": txn.id,
                "date": txn.occurred_on.isoformat(),
                "description": txn.description,
                "category": txn.category.name if txn.category else None,
                "type": txn.txn_type,
                "amount": txn.amount,
            }
            for txn in report.transactions
        ],
        "totals": {
            "income": report.totals.income,
            "expenses": report.totals.expenses,
            "net": report.totals.net,
            "count": report.totals.count,
        },
        "category_totals": [
            {
                "category": row.name,
                "income": row.income,
                "expenses": row.expenses,
                "net": row.net,
                "count": row.count,
                "total": row.total,
            }
            for row in report.category_totals
        ],
        "type_totals": {
            txn_type: {"total": row.total, "count": row.count, "average": row.average}
            for txn_type, row in report.type_totals.items()
        },
        "filters": report.filters.as_dict(),
        "period": report.period,
        "has_data": report.has_data,
    }
