"""Goal lifecycle flows; create and edit end in a direct progress recompute."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from ..domain.repositories.goal import GoalRepository
from ..domain.repositories.ledger import LedgerReader
from ..errors import OwnershipViolation
from ..models.goal import ACTIVE, Goal
from ..models.types import require_cents
from .goal_progress import GoalProgressCalculator

logger = logging.getLogger(__name__)


class GoalService:
    """Persist user-editable goal fields and re-derive progress afterwards."""

    def __init__(
        self,
        *,
        goals: GoalRepository,
        ledger: LedgerReader,
        calculator: GoalProgressCalculator,
    ) -> None:
        self.goals = goals
        self.ledger = ledger
        self.calculator = calculator

    def create_goal(
        self,
        *,
        owner_id: int,
        name: str,
        target_amount: Decimal,
        deadline: date,
        category_id: Optional[int] = None,
    ) -> Goal:
        """Create an active goal at zero and compute its initial progress."""
        self._validate(owner_id, target_amount, category_id)
        now = self.calculator.clock.now()
        goal = Goal(
            user_id=owner_id,
            name=name,
            target_amount=Decimal(target_amount),
            current_amount=Decimal("0.00"),
            deadline=deadline,
            category_id=category_id,
            status=ACTIVE,
            created_at=now,
            updated_at=now,
        )
        saved = self.goals.create(goal, user_id=owner_id)
        logger.info(f"Created goal {saved.id} for user {owner_id}")
        return self.calculator.recompute(saved, owner_id=owner_id)

    def edit_goal(
        self,
        goal_id: int,
        *,
        owner_id: int,
        name: Optional[str] = None,
        target_amount: Optional[Decimal] = None,
        deadline: Optional[date] = None,
        category_id: Optional[int] = None,
        clear_category: bool = False,
    ) -> Goal:
        """Update a goal's user fields, then recompute regardless of its status."""
        self._require_owner(goal_id, owner_id)
        goal = self.goals.get_by_id(goal_id, user_id=owner_id)

        if name is not None:
            goal.name = name
        if target_amount is not None:
            goal.target_amount = Decimal(target_amount)
        if deadline is not None:
            goal.deadline = deadline
        if clear_category:
            goal.category_id = None
        elif category_id is not None:
            goal.category_id = category_id
        self._validate(owner_id, goal.target_amount, goal.category_id)

        saved = self.goals.update(goal, user_id=owner_id)
        return self.calculator.recompute(saved, owner_id=owner_id)

    def delete_goal(self, goal_id: int, *, owner_id: int) -> None:
        self._require_owner(goal_id, owner_id)
        self.goals.delete(goal_id, user_id=owner_id)
        logger.info(f"Deleted goal {goal_id} for user {owner_id}")

    def _require_owner(self, goal_id: int, owner_id: int) -> None:
        owner = self.goals.owner_of(goal_id)
        if owner is None:
            raise ValueError(f"Goal {goal_id} not found")
        if owner != owner_id:
            raise OwnershipViolation("goal", goal_id, owner_id)

    def _validate(self, owner_id: int, target_amount: Decimal, category_id: Optional[int]) -> None:
        if require_cents(target_amount, "Target amount") <= 0:
            raise ValueError("Target amount must be positive")
        if category_id is not None:
            category = self.ledger.get_category(category_id)
            if category is None:
                raise ValueError(f"Category {category_id} not found")
            if category.user_id != owner_id:
                raise OwnershipViolation("category", category_id, owner_id)
