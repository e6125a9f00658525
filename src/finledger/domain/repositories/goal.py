"""Goal repository protocol."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional, Protocol

from ...models.goal import Goal
from ...models.transaction import Transaction
from .ledger import LedgerQuery


class GoalRepository(Protocol):
    """Persistence for goals, scoped by owner."""

    def get_by_id(self, goal_id: int, *, user_id: int) -> Optional[Goal]:
        """Retrieve a goal by ID."""
        ...

    def owner_of(self, goal_id: int) -> Optional[int]:
        """Owning user id of a goal, or None when it does not exist."""
        ...

    def list_all(self, *, user_id: int) -> list[Goal]:
        """All goals of the owner."""
        ...

    def list_active_for_category(self, category_id: Optional[int], *, user_id: int) -> list[Goal]:
        """Active goals tracking ``category_id``; ``None`` selects general goals."""
        ...

    def list_completed(self, *, user_id: int, updated_since: Optional[datetime] = None) -> list[Goal]:
        """Completed goals, most recently updated first."""
        ...

    def list_active_by_deadline(
        self,
        *,
        user_id: int,
        deadline_from: Optional[date] = None,
        deadline_to: Optional[date] = None,
        before: Optional[date] = None,
        descending: bool = False,
    ) -> list[Goal]:
        """Active goals filtered and ordered by deadline."""
        ...

    def count_by_status(self, *, user_id: int) -> dict[str, int]:
        """Number of goals per status."""
        ...

    def create(self, goal: Goal, *, user_id: int) -> Goal:
        """Persist a new goal."""
        ...

    def update(self, goal: Goal, *, user_id: int) -> Goal:
        """Persist user-editable fields of an existing goal."""
        ...

    def apply_progress(
        self,
        goal_id: int,
        *,
        user_id: int,
        scope: Callable[[Goal], LedgerQuery],
        derive: Callable[[Goal, list[Transaction]], tuple[Decimal, str]],
        updated_at: datetime,
    ) -> Goal:
        """Read the goal's ledger slice, derive its fields and write them in one transaction."""
        ...

    def delete(self, goal_id: int, *, user_id: int) -> None:
        """Delete a goal by ID."""
        ...
