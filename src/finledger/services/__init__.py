"""Service module exports."""

from . import (
    charts,
    dashboard,
    export_csv,
    goal_notifications,
    goal_progress,
    goal_sync,
    goals,
    ledger_service,
    reports,
)

__all__ = [
    "charts",
    "dashboard",
    "export_csv",
    "goal_notifications",
    "goal_progress",
    "goal_sync",
    "goals",
    "ledger_service",
    "reports",
]
