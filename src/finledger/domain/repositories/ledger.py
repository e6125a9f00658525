"""Ledger reader protocol."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Protocol

from ...models.category import Category
from ...models.transaction import Transaction


@dataclass(frozen=True)
class LedgerQuery:
    """Predicates applied to an owner's ledger. ``None`` means unrestricted."""

    user_id: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    category_id: Optional[int] = None
    txn_type: Optional[str] = None
    created_since: Optional[datetime] = None


@dataclass
class CategoryGroup:
    """Per-category aggregate over a set of transactions."""

    category_id: Optional[int]
    category: Optional[Category]
    income: Decimal = Decimal("0.00")
    expenses: Decimal = Decimal("0.00")
    count: int = 0
    types: set[str] = field(default_factory=set)

    @property
    def total(self) -> Decimal:
        return self.income + self.expenses

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses


class LedgerReader(Protocol):
    """Read-only query surface over one owner's transactions and categories."""

    def transactions(self, query: LedgerQuery, *, limit: Optional[int] = None) -> list[Transaction]:
        """Matching transactions ordered by (occurred_on desc, created_at desc)."""
        ...

    def sum_by_type(self, query: LedgerQuery) -> dict[str, Decimal]:
        """Return ``{"income": ..., "expense": ...}`` over the matching set."""
        ...

    def group_by_category(self, query: LedgerQuery) -> list[CategoryGroup]:
        """Group the matching set by category with per-group sums and counts."""
        ...

    def has_transactions(self, user_id: int) -> bool:
        """Whether the owner has any transaction at all."""
        ...

    def get_category(self, category_id: int) -> Optional[Category]:
        """Unscoped category lookup used for ownership checks."""
        ...

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Unscoped transaction lookup used for ownership checks."""
        ...
