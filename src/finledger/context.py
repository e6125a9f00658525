"""Engine context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .clock import Clock, SystemClock
from .config import BaseConfig
from .infra.database import SessionFactory, bootstrap_database
from .infra.repositories import (
    SQLModelGoalRepository,
    SQLModelLedgerReader,
    SQLModelTransactionRepository,
)
from .services.goal_notifications import GoalNotifications
from .services.goal_progress import GoalProgressCalculator
from .services.goal_sync import GoalSynchronizer, LedgerEventBus
from .services.goals import GoalService
from .services.ledger_service import LedgerWriter


@dataclass
class EngineContext:
    """Wired repositories and services sharing one session factory and clock."""

    config: BaseConfig
    session_factory: SessionFactory
    clock: Clock

    ledger: SQLModelLedgerReader
    goal_repo: SQLModelGoalRepository
    transaction_repo: SQLModelTransactionRepository

    bus: LedgerEventBus
    calculator: GoalProgressCalculator
    synchronizer: GoalSynchronizer
    notifications: GoalNotifications
    goals: GoalService
    writer: LedgerWriter


def create_engine_context(
    config: Optional[BaseConfig] = None,
    *,
    clock: Optional[Clock] = None,
    session_factory: Optional[SessionFactory] = None,
) -> EngineContext:
    """Build the context; creates the database schema unless a factory is supplied."""

    if config is None:
        config = BaseConfig()
    if clock is None:
        clock = SystemClock()
    if session_factory is None:
        _, session_factory = bootstrap_database(config)

    ledger = SQLModelLedgerReader(session_factory)
    goal_repo = SQLModelGoalRepository(session_factory)
    transaction_repo = SQLModelTransactionRepository(session_factory)

    calculator = GoalProgressCalculator(goals=goal_repo, clock=clock)
    synchronizer = GoalSynchronizer(calculator=calculator, goals=goal_repo, ledger=ledger)
    bus = LedgerEventBus()
    synchronizer.subscribe(bus)

    return EngineContext(
        config=config,
        session_factory=session_factory,
        clock=clock,
        ledger=ledger,
        goal_repo=goal_repo,
        transaction_repo=transaction_repo,
        bus=bus,
        calculator=calculator,
        synchronizer=synchronizer,
        notifications=GoalNotifications(
            goals=goal_repo, clock=clock, recent_hours=config.RECENT_ACHIEVEMENT_HOURS
        ),
        goals=GoalService(goals=goal_repo, ledger=ledger, calculator=calculator),
        writer=LedgerWriter(repo=transaction_repo, ledger=ledger, bus=bus, clock=clock),
    )
