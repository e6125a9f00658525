"""Transaction persistence that announces every mutation on the ledger bus."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from ..clock import Clock, SystemClock
from ..domain.repositories.ledger import LedgerReader
from ..errors import OwnershipViolation
from ..infra.repositories.transaction import SQLModelTransactionRepository
from ..models.transaction import TRANSACTION_TYPES, Transaction
from ..models.types import require_cents
from .goal_sync import CREATED, DELETED, UPDATED, LedgerEventBus, TransactionMutated

logger = logging.getLogger(__name__)


class LedgerWriter:
    """Create, update and delete transactions, publishing ``TransactionMutated``."""

    def __init__(
        self,
        *,
        repo: SQLModelTransactionRepository,
        ledger: LedgerReader,
        bus: LedgerEventBus,
        clock: Clock | None = None,
    ) -> None:
        self.repo = repo
        self.ledger = ledger
        self.bus = bus
        self.clock = clock or SystemClock()

    def record(
        self,
        *,
        owner_id: int,
        amount: Decimal,
        txn_type: str,
        occurred_on: date,
        category_id: Optional[int] = None,
        description: str = "",
    ) -> Transaction:
        """Persist a new transaction and notify subscribers."""
        self._validate(owner_id, amount, txn_type, category_id)
        txn = Transaction(
            user_id=owner_id,
            amount=Decimal(amount),
            txn_type=txn_type,
            occurred_on=occurred_on,
            category_id=category_id,
            description=description,
            created_at=self.clock.now(),
        )
        saved = self.repo.create(txn, user_id=owner_id)
        logger.info(f"Recorded {txn_type} {saved.amount} as transaction {saved.id}")
        self.bus.publish(
            TransactionMutated(
                owner_id=owner_id,
                transaction_id=saved.id,
                operation=CREATED,
                category_id=saved.category_id,
            )
        )
        return saved

    def update(
        self,
        transaction_id: int,
        *,
        owner_id: int,
        amount: Optional[Decimal] = None,
        txn_type: Optional[str] = None,
        occurred_on: Optional[date] = None,
        category_id: Optional[int] = None,
        clear_category: bool = False,
        description: Optional[str] = None,
    ) -> Transaction:
        """Apply the given field changes and notify subscribers."""
        existing = self._owned(transaction_id, owner_id)
        previous_category_id = existing.category_id

        if amount is not None:
            existing.amount = Decimal(amount)
        if txn_type is not None:
            existing.txn_type = txn_type
        if occurred_on is not None:
            existing.occurred_on = occurred_on
        if clear_category:
            existing.category_id = None
        elif category_id is not None:
            existing.category_id = category_id
        if description is not None:
            existing.description = description
        self._validate(owner_id, existing.amount, existing.txn_type, existing.category_id)

        saved = self.repo.update(existing, user_id=owner_id)
        self.bus.publish(
            TransactionMutated(
                owner_id=owner_id,
                transaction_id=saved.id,
                operation=UPDATED,
                category_id=saved.category_id,
                previous_category_id=(
                    previous_category_id if previous_category_id != saved.category_id else None
                ),
            )
        )
        return saved

    def delete(self, transaction_id: int, *, owner_id: int) -> None:
        """Remove a transaction and notify subscribers with its former category."""
        existing = self._owned(transaction_id, owner_id)
        self.repo.delete(transaction_id, user_id=owner_id)
        logger.info(f"Deleted transaction {transaction_id}")
        self.bus.publish(
            TransactionMutated(
                owner_id=owner_id,
                transaction_id=transaction_id,
                operation=DELETED,
                category_id=existing.category_id,
            )
        )

    def _owned(self, transaction_id: int, owner_id: int) -> Transaction:
        txn = self.ledger.get_transaction(transaction_id)
        if txn is None:
            raise ValueError(f"Transaction {transaction_id} not found")
        if txn.user_id != owner_id:
            raise OwnershipViolation("transaction", transaction_id, owner_id)
        return txn

    def _validate(
        self, owner_id: int, amount: Decimal, txn_type: str, category_id: Optional[int]
    ) -> None:
        if txn_type not in TRANSACTION_TYPES:
            raise ValueError(f"Invalid transaction type: {txn_type}")
        if require_cents(amount) <= 0:
            raise ValueError("Amount must be positive")
        if category_id is not None:
            category = self.ledger.get_category(category_id)
            if category is None:
                raise ValueError(f"Category {category_id} not found")
            if category.user_id != owner_id:
                raise OwnershipViolation("category", category_id, owner_id)
