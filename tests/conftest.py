"""Pytest configuration and shared fixtures for FinLedger tests.

Each test gets a fresh SQLite file, a frozen clock and an engine context wired
to both, so ledger mutations, goal recomputes and aggregates can be exercised
end to end without touching the real database.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from sqlmodel import Session, SQLModel, create_engine

from finledger.clock import FixedClock
from finledger.config import TestingConfig
from finledger.context import create_engine_context
from finledger.infra.database import create_session_factory
from finledger.models import Category, Goal, Transaction, User  # noqa: F401 - registers tables

# Sunday 15 March 2026, midday
NOW = datetime(2026, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine(tmp_path):
    """Create an isolated SQLite database file for each test."""
    engine = create_engine(f"sqlite:///{tmp_path / 'finledger-test.db'}", echo=False)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Transactional session scopes, as used by the repositories."""
    return create_session_factory(db_engine)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def engine_ctx(tmp_path, session_factory, clock):
    """Fully wired engine: ledger reader, goal repo, bus, synchronizer, writer."""
    config = TestingConfig(tmp_path / "data")
    return create_engine_context(config, clock=clock, session_factory=session_factory)


# =============================================================================
# Test Data Factories
# =============================================================================


def _add_user(db_engine, username: str) -> User:
    with Session(db_engine, expire_on_commit=False) as session:
        user = User(username=username)
        session.add(user)
        session.commit()
        session.refresh(user)
        return user


@pytest.fixture
def user(db_engine) -> User:
    """Default owner for test data."""
    return _add_user(db_engine, "tester")


@pytest.fixture
def other_user(db_engine) -> User:
    """A second owner for cross-tenant access checks."""
    return _add_user(db_engine, "intruder")


@pytest.fixture
def category_factory(db_engine, user):
    """Factory for persisted categories."""

    def _create_category(
        name: str = "Savings",
        category_type: str = "income",
        owner: User | None = None,
    ) -> Category:
        owner = owner or user
        with Session(db_engine, expire_on_commit=False) as session:
            category = Category(user_id=owner.id, name=name, category_type=category_type)
            session.add(category)
            session.commit()
            session.refresh(category)
            return category

    return _create_category


@pytest.fixture
def record(engine_ctx, user):
    """Record a transaction through the ledger writer (fires goal sync).

    Amounts may be given as str/int; ``when`` is the business date.
    """

    def _record(
        amount,
        txn_type: str = "income",
        when: date | None = None,
        category: Category | None = None,
        description: str = "",
        owner: User | None = None,
    ) -> Transaction:
        owner = owner or user
        return engine_ctx.writer.record(
            owner_id=owner.id,
            amount=Decimal(str(amount)),
            txn_type=txn_type,
            occurred_on=when or engine_ctx.clock.today(),
            category_id=category.id if category else None,
            description=description,
        )

    return _record


@pytest.fixture
def goal_factory(engine_ctx, user):
    """Create goals through the goal service (direct recompute included)."""

    def _create_goal(
        target,
        deadline: date | None = None,
        category: Category | None = None,
        name: str = "Emergency fund",
        owner: User | None = None,
    ) -> Goal:
        owner = owner or user
        return engine_ctx.goals.create_goal(
            owner_id=owner.id,
            name=name,
            target_amount=Decimal(str(target)),
            deadline=deadline or date(2026, 12, 31),
            category_id=category.id if category else None,
        )

    return _create_goal


@pytest.fixture
def force_goal_state(db_engine):
    """Overwrite stored goal fields directly, bypassing recomputation."""

    def _force(goal: Goal, **fields) -> Goal:
        with Session(db_engine, expire_on_commit=False) as session:
            row = session.get(Goal, goal.id)
            for key, value in fields.items():
                setattr(row, key, value)
            session.add(row)
            session.commit()
            session.refresh(row)
            return row

    return _force


@pytest.fixture(autouse=True)
def _reset_finledger_logger():
    """Drop handlers installed by ``setup_logging`` so tests stay isolated."""
    yield
    logger = logging.getLogger("finledger")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
