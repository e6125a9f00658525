"""SQLModel implementation of the read-only ledger surface."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlmodel import select

from ...domain.repositories.ledger import CategoryGroup, LedgerQuery
from ...models.category import Category
from ...models.transaction import EXPENSE, INCOME, Transaction
from ..database import SessionFactory

ZERO = Decimal("0.00")
CENTS = Decimal("0.01")

# Newest business date first, then the most recently written row
LEDGER_ORDER = (
    Transaction.occurred_on.desc(),  # type: ignore
    Transaction.created_at.desc(),  # type: ignore
    Transaction.id.desc(),  # type: ignore
)


def apply_ledger_query(statement, query: LedgerQuery):
    """Attach the owner scope and optional predicates to a select statement."""
    statement = statement.where(Transaction.user_id == query.user_id)
    if query.start_date is not None:
        statement = statement.where(Transaction.occurred_on >= query.start_date)
    if query.end_date is not None:
        statement = statement.where(Transaction.occurred_on <= query.end_date)
    if query.category_id is not None:
        statement = statement.where(Transaction.category_id == query.category_id)
    if query.txn_type is not None:
        statement = statement.where(Transaction.txn_type == query.txn_type)
    if query.created_since is not None:
        statement = statement.where(Transaction.created_at >= query.created_since)
    return statement


def _money(value) -> Decimal:
    return Decimal(value or 0).quantize(CENTS)


class SQLModelLedgerReader:
    """Ledger reader backed by a session factory; never writes."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def transactions(self, query: LedgerQuery, *, limit: Optional[int] = None) -> list[Transaction]:
        """Matching transactions, newest business date first, then newest row."""
        with self.session_factory() as session:
            statement = apply_ledger_query(select(Transaction), query).order_by(*LEDGER_ORDER)
            if limit is not None:
                statement = statement.limit(limit)
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def sum_by_type(self, query: LedgerQuery) -> dict[str, Decimal]:
        """Return income and expense sums over the matching transactions."""
        totals = {INCOME: ZERO, EXPENSE: ZERO}
        with self.session_factory() as session:
            statement = apply_ledger_query(
                select(Transaction.txn_type, func.sum(Transaction.amount)), query
            ).group_by(Transaction.txn_type)
            for txn_type, total in session.exec(statement).all():
                totals[txn_type] = _money(total)
        return totals

    def group_by_category(self, query: LedgerQuery) -> list[CategoryGroup]:
        """Group matching transactions by category, in category id order."""
        with self.session_factory() as session:
            statement = (
                apply_ledger_query(
                    select(
                        Transaction.category_id,
                        Transaction.txn_type,
                        func.sum(Transaction.amount),
                        func.count(),
                    ),
                    query,
                )
                .group_by(Transaction.category_id, Transaction.txn_type)
                .order_by(Transaction.category_id)
            )
            groups: dict[Optional[int], CategoryGroup] = {}
            for category_id, txn_type, total, count in session.exec(statement).all():
                group = groups.setdefault(
                    category_id, CategoryGroup(category_id=category_id, category=None)
                )
                if txn_type == INCOME:
                    group.income += _money(total)
                else:
                    group.expenses += _money(total)
                group.count += int(count)
                group.types.add(txn_type)

            category_ids = [cid for cid in groups if cid is not None]
            if category_ids:
                categories = session.exec(
                    select(Category).where(Category.id.in_(category_ids))  # type: ignore
                ).all()
                for category in categories:
                    groups[category.id].category = category
                session.expunge_all()
        return list(groups.values())

    def has_transactions(self, user_id: int) -> bool:
        """Whether the owner has recorded anything."""
        with self.session_factory() as session:
            count = session.exec(
                select(func.count()).select_from(Transaction).where(Transaction.user_id == user_id)
            ).one()
            return bool(count)

    def get_category(self, category_id: int) -> Optional[Category]:
        """Retrieve a category regardless of owner."""
        with self.session_factory() as session:
            obj = session.get(Category, category_id)
            if obj:
                session.expunge(obj)
            return obj

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Retrieve a transaction regardless of owner."""
        with self.session_factory() as session:
            obj = session.get(Transaction, transaction_id)
            if obj:
                session.expunge(obj)
            return obj
