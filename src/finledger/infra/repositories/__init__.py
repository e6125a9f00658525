"""Concrete repository implementations using SQLModel."""

from .goal import SQLModelGoalRepository
from .ledger import SQLModelLedgerReader
from .transaction import SQLModelTransactionRepository

__all__ = [
    "SQLModelGoalRepository",
    "SQLModelLedgerReader",
    "SQLModelTransactionRepository",
]
