"""Repository protocol definitions for domain layer."""

from .goal import GoalRepository
from .ledger import CategoryGroup, LedgerQuery, LedgerReader

__all__ = [
    "CategoryGroup",
    "GoalRepository",
    "LedgerQuery",
    "LedgerReader",
]
