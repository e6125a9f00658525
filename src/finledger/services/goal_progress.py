"""Goal progress derivation.

``compute_progress`` is the pure core: given a goal, the transactions that
fall inside its scope and the current instant, it returns the amount and
status the goal should have. ``GoalProgressCalculator`` wraps it with the
ledger read and the write, both inside one repository transaction.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Iterable, NamedTuple

from ..clock import Clock, SystemClock
from ..domain.repositories.goal import GoalRepository
from ..domain.repositories.ledger import LedgerQuery
from ..errors import OwnershipViolation
from ..models.goal import ACTIVE, CANCELLED, COMPLETED, Goal
from ..models.transaction import INCOME, Transaction

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


class GoalProgress(NamedTuple):
    """Derived state for one goal."""

    current_amount: Decimal
    status: str


def progress_scope(goal: Goal) -> LedgerQuery:
    """Ledger slice a goal counts: rows written since the goal was created.

    Scope is by record-creation time, not business date, so backdated
    transactions entered after the goal still count and older rows never do.
    """
    return LedgerQuery(
        user_id=goal.user_id,
        category_id=goal.category_id,
        created_since=goal.created_at,
    )


def compute_progress(goal: Goal, transactions: Iterable[Transaction], now: datetime) -> GoalProgress:
    """Return the goal's amount and status for the given ledger slice."""

    raw = ZERO
    for txn in transactions:
        amount = Decimal(txn.amount)
        raw += amount if txn.txn_type == INCOME else -amount
    current_amount = max(ZERO, raw)

    if current_amount >= Decimal(goal.target_amount):
        status = COMPLETED
    elif goal.deadline < now.date() and goal.status == ACTIVE:
        status = CANCELLED
    else:
        status = ACTIVE
    return GoalProgress(current_amount=current_amount, status=status)


def progress_percentage(goal: Goal) -> float:
    """Share of the target reached, capped at 100; 0 for a non-positive target."""
    target = Decimal(goal.target_amount)
    if target <= 0:
        return 0.0
    return float(min(Decimal(100), Decimal(goal.current_amount) / target * 100))


def is_achieved(goal: Goal) -> bool:
    return Decimal(goal.current_amount) >= Decimal(goal.target_amount)


def days_remaining(goal: Goal, clock: Clock) -> int:
    """Whole days until the deadline, never negative."""
    return max(0, (goal.deadline - clock.today()).days)


class GoalProgressCalculator:
    """Recompute and persist a goal's derived fields from the ledger."""

    def __init__(
        self,
        *,
        goals: GoalRepository,
        clock: Clock | None = None,
    ) -> None:
        self.goals = goals
        self.clock = clock or SystemClock()

    def recompute(self, goal: Goal, *, owner_id: int) -> Goal:
        """Re-derive ``current_amount``/``status`` and bump ``updated_at``.

        The write happens even when nothing changed; achievement queries use
        ``updated_at`` as their recency signal.
        """
        if goal.user_id != owner_id:
            logger.warning(f"Rejected recompute of goal {goal.id} for user {owner_id}")
            raise OwnershipViolation("goal", goal.id, owner_id)

        now = self.clock.now()
        saved = self.goals.apply_progress(
            goal.id,
            user_id=owner_id,
            scope=progress_scope,
            derive=lambda row, transactions: compute_progress(row, transactions, now),
            updated_at=now,
        )
        if saved.status != goal.status:
            logger.info(
                f"Goal {goal.id} moved {goal.status} -> {saved.status}",
                extra={"goal_id": goal.id, "current_amount": str(saved.current_amount)},
            )
        return saved

    def recompute_by_id(self, goal_id: int, *, owner_id: int) -> Goal:
        """Load a goal of ``owner_id`` and recompute it."""
        owner = self.goals.owner_of(goal_id)
        if owner is None:
            raise ValueError(f"Goal {goal_id} not found")
        if owner != owner_id:
            raise OwnershipViolation("goal", goal_id, owner_id)
        goal = self.goals.get_by_id(goal_id, user_id=owner_id)
        return self.recompute(goal, owner_id=owner_id)
