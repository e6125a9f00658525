"""SQLModel implementation of Goal repository."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from sqlalchemy import func
from sqlmodel import select

from ...domain.repositories.ledger import LedgerQuery
from ...errors import OwnershipViolation
from ...models.goal import ACTIVE, COMPLETED, GOAL_STATUSES, Goal
from ...models.transaction import Transaction
from ..database import SessionFactory
from .ledger import LEDGER_ORDER, apply_ledger_query


class SQLModelGoalRepository:
    """SQLModel-based goal repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, goal_id: int, *, user_id: int) -> Optional[Goal]:
        """Retrieve a goal by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Goal).where(Goal.id == goal_id).where(Goal.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def owner_of(self, goal_id: int) -> Optional[int]:
        """Owning user id of a goal, or None when it does not exist."""
        with self.session_factory() as session:
            return session.exec(select(Goal.user_id).where(Goal.id == goal_id)).first()

    def list_all(self, *, user_id: int) -> list[Goal]:
        """List every goal of the owner, nearest deadline first."""
        with self.session_factory() as session:
            statement = (
                select(Goal)
                .where(Goal.user_id == user_id)
                .order_by(Goal.deadline, Goal.id)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_active_for_category(self, category_id: Optional[int], *, user_id: int) -> list[Goal]:
        """Active goals bound to ``category_id``; ``None`` returns general goals."""
        with self.session_factory() as session:
            statement = select(Goal).where(Goal.user_id == user_id).where(Goal.status == ACTIVE)
            if category_id is None:
                statement = statement.where(Goal.category_id.is_(None))  # type: ignore
            else:
                statement = statement.where(Goal.category_id == category_id)
            rows = list(session.exec(statement.order_by(Goal.id)).all())  # type: ignore
            session.expunge_all()
            return rows

    def list_completed(self, *, user_id: int, updated_since: Optional[datetime] = None) -> list[Goal]:
        """Completed goals ordered by most recent update."""
        with self.session_factory() as session:
            statement = select(Goal).where(Goal.user_id == user_id).where(Goal.status == COMPLETED)
            if updated_since is not None:
                statement = statement.where(Goal.updated_at >= updated_since)
            statement = statement.order_by(Goal.updated_at.desc(), Goal.id.desc())  # type: ignore
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_active_by_deadline(
        self,
        *,
        user_id: int,
        deadline_from: Optional[date] = None,
        deadline_to: Optional[date] = None,
        before: Optional[date] = None,
        descending: bool = False,
    ) -> list[Goal]:
        """Active goals within a deadline window (inclusive) or strictly before a date."""
        with self.session_factory() as session:
            statement = select(Goal).where(Goal.user_id == user_id).where(Goal.status == ACTIVE)
            if deadline_from is not None:
                statement = statement.where(Goal.deadline >= deadline_from)
            if deadline_to is not None:
                statement = statement.where(Goal.deadline <= deadline_to)
            if before is not None:
                statement = statement.where(Goal.deadline < before)
            order = Goal.deadline.desc() if descending else Goal.deadline.asc()  # type: ignore
            rows = list(session.exec(statement.order_by(order, Goal.id)).all())  # type: ignore
            session.expunge_all()
            return rows

    def count_by_status(self, *, user_id: int) -> dict[str, int]:
        """Count goals per status; statuses with no goals report 0."""
        counts = {status: 0 for status in GOAL_STATUSES}
        with self.session_factory() as session:
            statement = (
                select(Goal.status, func.count())
                .where(Goal.user_id == user_id)
                .group_by(Goal.status)
            )
            for status, count in session.exec(statement).all():
                counts[status] = int(count)
        return counts

    def create(self, goal: Goal, *, user_id: int) -> Goal:
        """Create a new goal."""
        with self.session_factory() as session:
            goal.user_id = user_id
            session.add(goal)
            session.commit()
            session.refresh(goal)
            session.expunge(goal)
            return goal

    def update(self, goal: Goal, *, user_id: int) -> Goal:
        """Update the user-editable fields of an existing goal."""
        with self.session_factory() as session:
            row = self._owned_row(session, goal.id, user_id)
            row.name = goal.name
            row.target_amount = goal.target_amount
            row.deadline = goal.deadline
            row.category_id = goal.category_id
            session.add(row)
            session.commit()
            session.refresh(row)
            session.expunge(row)
            return row

    def apply_progress(
        self,
        goal_id: int,
        *,
        user_id: int,
        scope: Callable[[Goal], LedgerQuery],
        derive: Callable[[Goal, list[Transaction]], tuple[Decimal, str]],
        updated_at: datetime,
    ) -> Goal:
        """Read the goal's ledger slice and write the derived fields in one session.

        The goal row is locked for update where the backend supports it, and
        nothing is written unless the commit succeeds.
        """
        with self.session_factory() as session:
            row = self._owned_row(session, goal_id, user_id, lock=True)
            statement = apply_ledger_query(select(Transaction), scope(row)).order_by(*LEDGER_ORDER)
            transactions = list(session.exec(statement).all())
            current_amount, status = derive(row, transactions)
            row.current_amount = current_amount
            row.status = status
            row.updated_at = updated_at
            session.add(row)
            session.commit()
            session.refresh(row)
            session.expunge(row)
            return row

    def delete(self, goal_id: int, *, user_id: int) -> None:
        """Delete a goal by ID."""
        with self.session_factory() as session:
            goal = session.exec(
                select(Goal).where(Goal.id == goal_id).where(Goal.user_id == user_id)
            ).first()
            if goal:
                session.delete(goal)
                session.commit()

    @staticmethod
    def _owned_row(session, goal_id: Optional[int], user_id: int, lock: bool = False) -> Goal:
        if goal_id is None:
            raise ValueError("Goal has no id")
        row = session.get(Goal, goal_id, with_for_update=True if lock else None)
        if row is None:
            raise ValueError(f"Goal {goal_id} not found")
        if row.user_id != user_id:
            raise OwnershipViolation("goal", goal_id, user_id)
        return row
