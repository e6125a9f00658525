"""Read-side goal queries feeding achievement and deadline notifications."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from ..clock import Clock, SystemClock
from ..domain.repositories.goal import GoalRepository
from ..models.goal import ACTIVE, CANCELLED, COMPLETED, Goal

OVERDUE = "overdue"
CRITICAL = "critical"
HIGH = "high"
MEDIUM = "medium"
LOW = "low"


@dataclass(frozen=True)
class AchievementStats:
    total: int
    completed: int
    active: int
    cancelled: int
    completion_rate: float

    def as_dict(self) -> dict[str, float]:
        return {
            "total": self.total,
            "completed": self.completed,
            "active": self.active,
            "cancelled": self.cancelled,
            "completion_rate": self.completion_rate,
        }


def urgency_level(deadline: date, clock: Clock) -> str:
    """Bucket the whole days left before ``deadline``."""
    days = (deadline - clock.today()).days
    if days < 0:
        return OVERDUE
    if days <= 1:
        return CRITICAL
    if days <= 3:
        return HIGH
    if days <= 7:
        return MEDIUM
    return LOW


def time_remaining(deadline: date, clock: Clock) -> str:
    """Short human label for the distance to ``deadline``."""
    days = (deadline - clock.today()).days
    if days < 0:
        return f"Overdue by {-days} day{'s' if days != -1 else ''}"
    if days == 0:
        return "Due today"
    return f"Due in {days} day{'s' if days != 1 else ''}"


def is_expiring_soon(goal: Goal, clock: Clock, days: int = 7) -> bool:
    remaining = (goal.deadline - clock.today()).days
    return 0 <= remaining <= days


def is_overdue(goal: Goal, clock: Clock) -> bool:
    return goal.status == ACTIVE and goal.deadline < clock.today()


class GoalNotifications:
    """Owner-scoped goal queries evaluated against an injected clock."""

    def __init__(
        self,
        *,
        goals: GoalRepository,
        clock: Clock | None = None,
        recent_hours: int = 24,
    ) -> None:
        self.goals = goals
        self.clock = clock or SystemClock()
        self.recent_hours = recent_hours

    def recently_achieved(self, owner_id: int) -> list[Goal]:
        """Completed goals whose last recompute falls inside the recency window."""
        since = self.clock.now() - timedelta(hours=self.recent_hours)
        return self.goals.list_completed(user_id=owner_id, updated_since=since)

    def has_recent_achievements(self, owner_id: int) -> bool:
        return bool(self.recently_achieved(owner_id))

    def all_achieved(self, owner_id: int) -> list[Goal]:
        return self.goals.list_completed(user_id=owner_id)

    def expiring_within(self, owner_id: int, days: int = 7) -> list[Goal]:
        """Active goals due between today and ``days`` from now, soonest first."""
        today = self.clock.today()
        return self.goals.list_active_by_deadline(
            user_id=owner_id,
            deadline_from=today,
            deadline_to=today + timedelta(days=days),
        )

    def expiring_today(self, owner_id: int) -> list[Goal]:
        return self.expiring_within(owner_id, 1)

    def expiring_this_week(self, owner_id: int) -> list[Goal]:
        return self.expiring_within(owner_id, 7)

    def has_expiring_goals(self, owner_id: int, days: int = 7) -> bool:
        return bool(self.expiring_within(owner_id, days))

    def overdue(self, owner_id: int) -> list[Goal]:
        """Active goals past their deadline, most recently due first."""
        return self.goals.list_active_by_deadline(
            user_id=owner_id, before=self.clock.today(), descending=True
        )

    def urgency_level(self, deadline: date) -> str:
        return urgency_level(deadline, self.clock)

    def achievement_stats(self, owner_id: int) -> AchievementStats:
        counts = self.goals.count_by_status(user_id=owner_id)
        total = sum(counts.values())
        completed = counts.get(COMPLETED, 0)
        rate = round(completed / total * 100, 1) if total > 0 else 0
        return AchievementStats(
            total=total,
            completed=completed,
            active=counts.get(ACTIVE, 0),
            cancelled=counts.get(CANCELLED, 0),
            completion_rate=rate,
        )
