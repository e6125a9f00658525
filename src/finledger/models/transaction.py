"""SQLModel definitions for ledger transactions."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

from .types import UTCDateTime, utcnow

if TYPE_CHECKING:  # pragma: no cover - import guard for circular dependency
    from .category import Category

INCOME = "income"
EXPENSE = "expense"
TRANSACTION_TYPES = (INCOME, EXPENSE)


class Transaction(SQLModel, table=True):
    """A single income or expense entry in an owner's ledger.

    ``amount`` is always positive; ``txn_type`` carries the direction.
    ``occurred_on`` is the business date shown to the user, while
    ``created_at`` records when the row was written and breaks ordering ties.
    """

    __tablename__: ClassVar[str] = "transaction"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    category_id: Optional[int] = Field(default=None, foreign_key="category.id", index=True)
    txn_type: str = Field(nullable=False, max_length=16, index=True)
    amount: Decimal = Field(max_digits=12, decimal_places=2, nullable=False)
    description: str = Field(default="", max_length=255)
    occurred_on: date = Field(nullable=False, index=True)
    created_at: datetime = Field(
        default_factory=utcnow, sa_type=UTCDateTime, nullable=False, index=True
    )

    category: "Category | None" = Relationship(
        back_populates="transactions",
        sa_relationship=relationship("Category", back_populates="transactions", lazy="selectin"),
    )

    @property
    def signed_amount(self) -> Decimal:
        """Amount with expenses negated."""
        return self.amount if self.txn_type == INCOME else -self.amount
