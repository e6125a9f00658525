"""SQLModel implementation of transaction persistence."""

from __future__ import annotations

from typing import Optional

from sqlmodel import select

from ...models.transaction import Transaction
from ..database import SessionFactory


class SQLModelTransactionRepository:
    """Create/update/delete for ledger rows; reads go through the ledger reader."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, transaction_id: int, *, user_id: int) -> Optional[Transaction]:
        """Retrieve a transaction by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Transaction)
                .where(Transaction.id == transaction_id)
                .where(Transaction.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def create(self, transaction: Transaction, *, user_id: int) -> Transaction:
        """Create a new transaction."""
        with self.session_factory() as session:
            transaction.user_id = user_id
            session.add(transaction)
            session.commit()
            session.refresh(transaction)
            session.expunge(transaction)
            return transaction

    def update(self, transaction: Transaction, *, user_id: int) -> Transaction:
        """Copy editable columns onto the stored row of an existing transaction."""
        with self.session_factory() as session:
            row = session.exec(
                select(Transaction)
                .where(Transaction.id == transaction.id)
                .where(Transaction.user_id == user_id)
            ).first()
            if row is None:
                raise ValueError(f"Transaction {transaction.id} not found")
            row.category_id = transaction.category_id
            row.txn_type = transaction.txn_type
            row.amount = transaction.amount
            row.description = transaction.description
            row.occurred_on = transaction.occurred_on
            session.add(row)
            session.commit()
            session.refresh(row)
            session.expunge(row)
            return row

    def delete(self, transaction_id: int, *, user_id: int) -> bool:
        """Delete a transaction by ID; returns whether a row was removed."""
        with self.session_factory() as session:
            transaction = session.exec(
                select(Transaction)
                .where(Transaction.id == transaction_id)
                .where(Transaction.user_id == user_id)
            ).first()
            if transaction is None:
                return False
            session.delete(transaction)
            session.commit()
            return True
