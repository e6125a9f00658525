"""Ledger mutation events and the goal synchronizer that consumes them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ..domain.repositories.goal import GoalRepository
from ..domain.repositories.ledger import LedgerReader
from ..errors import OwnershipViolation
from ..models.goal import Goal
from .goal_progress import GoalProgressCalculator

logger = logging.getLogger(__name__)

CREATED = "created"
UPDATED = "updated"
DELETED = "deleted"
OPERATIONS = (CREATED, UPDATED, DELETED)


@dataclass(frozen=True)
class TransactionMutated:
    """A transaction of ``owner_id`` was created, updated or deleted.

    ``category_id`` is the category after the mutation (before it, for a
    delete). ``previous_category_id`` is set when an update moved the
    transaction out of another category.
    """

    owner_id: int
    transaction_id: Optional[int]
    operation: str
    category_id: Optional[int] = None
    previous_category_id: Optional[int] = None

    def __post_init__(self) -> None:
        if self.operation not in OPERATIONS:
            raise ValueError(f"Unknown ledger operation: {self.operation}")


Handler = Callable[[TransactionMutated], object]


class LedgerEventBus:
    """Synchronous in-process dispatch of ledger mutation events."""

    def __init__(self) -> None:
        self._subscribers: list[Handler] = []

    def subscribe(self, handler: Handler) -> None:
        if handler not in self._subscribers:
            self._subscribers.append(handler)

    def unsubscribe(self, handler: Handler) -> None:
        if handler in self._subscribers:
            self._subscribers.remove(handler)

    def publish(self, event: TransactionMutated) -> list[object]:
        """Deliver ``event`` to every subscriber in order and collect their results."""
        return [handler(event) for handler in list(self._subscribers)]


class GoalSynchronizer:
    """Recompute the active goals a ledger mutation can affect."""

    def __init__(
        self,
        *,
        calculator: GoalProgressCalculator,
        goals: GoalRepository,
        ledger: LedgerReader,
    ) -> None:
        self.calculator = calculator
        self.goals = goals
        self.ledger = ledger

    def subscribe(self, bus: LedgerEventBus) -> None:
        bus.subscribe(self.handle)

    def handle(self, event: TransactionMutated) -> list[Goal]:
        """Recompute active category goals and active general goals of the owner.

        Completed and cancelled goals are left alone here; only a direct
        recompute (goal created or edited) touches them.
        """
        self._check_ownership(event)

        affected: list[Goal] = []
        seen: set[int] = set()
        categories = [event.category_id, event.previous_category_id]
        for category_id in dict.fromkeys(c for c in categories if c is not None):
            affected.extend(self.goals.list_active_for_category(category_id, user_id=event.owner_id))
        affected.extend(self.goals.list_active_for_category(None, user_id=event.owner_id))

        recomputed: list[Goal] = []
        for goal in affected:
            if goal.id in seen:
                continue
            seen.add(goal.id)
            recomputed.append(self.calculator.recompute(goal, owner_id=event.owner_id))

        logger.info(
            f"Synchronized {len(recomputed)} goal(s) after transaction {event.operation}",
            extra={"owner_id": event.owner_id, "transaction_id": event.transaction_id},
        )
        return recomputed

    def _check_ownership(self, event: TransactionMutated) -> None:
        if event.transaction_id is not None:
            txn = self.ledger.get_transaction(event.transaction_id)
            if txn is not None and txn.user_id != event.owner_id:
                logger.warning(f"Rejected ledger event for foreign transaction {event.transaction_id}")
                raise OwnershipViolation("transaction", event.transaction_id, event.owner_id)
        for category_id in (event.category_id, event.previous_category_id):
            if category_id is None:
                continue
            category = self.ledger.get_category(category_id)
            if category is not None and category.user_id != event.owner_id:
                logger.warning(f"Rejected ledger event for foreign category {category_id}")
                raise OwnershipViolation("category", category_id, event.owner_id)
