"""Savings goals whose progress is derived from the ledger."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

from .types import UTCDateTime, utcnow

ACTIVE = "active"
COMPLETED = "completed"
CANCELLED = "cancelled"
GOAL_STATUSES = (ACTIVE, COMPLETED, CANCELLED)


class Goal(SQLModel, table=True):
    """A target amount to reach before a deadline.

    A goal with ``category_id`` tracks only that category; without one it is a
    general savings goal over the owner's whole ledger. ``current_amount``,
    ``status`` and ``updated_at`` are written only by progress recomputation.
    """

    __tablename__: ClassVar[str] = "goal"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    category_id: Optional[int] = Field(default=None, foreign_key="category.id", index=True)
    name: str = Field(nullable=False, max_length=120)
    target_amount: Decimal = Field(max_digits=12, decimal_places=2, nullable=False)
    current_amount: Decimal = Field(
        default=Decimal("0.00"), max_digits=12, decimal_places=2, nullable=False
    )
    deadline: date = Field(nullable=False, index=True)
    status: str = Field(default=ACTIVE, nullable=False, max_length=16, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, nullable=False)
    updated_at: datetime = Field(
        default_factory=utcnow, sa_type=UTCDateTime, nullable=False, index=True
    )
