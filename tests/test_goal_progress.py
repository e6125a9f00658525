"""Tests for goal progress derivation and persistence."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from sqlalchemy import event

from finledger.clock import FixedClock
from finledger.errors import OwnershipViolation
from finledger.models.goal import ACTIVE, CANCELLED, COMPLETED, Goal
from finledger.models.transaction import Transaction
from finledger.services.goal_progress import (
    compute_progress,
    days_remaining,
    is_achieved,
    progress_percentage,
)

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def _goal(target="1000", status=ACTIVE, deadline=date(2026, 6, 30), current="0") -> Goal:
    return Goal(
        id=1,
        user_id=1,
        name="Trip",
        target_amount=Decimal(target),
        current_amount=Decimal(current),
        deadline=deadline,
        status=status,
        created_at=NOW - timedelta(days=30),
        updated_at=NOW - timedelta(days=30),
    )


def _txn(amount: str, txn_type: str = "income") -> Transaction:
    return Transaction(
        user_id=1, amount=Decimal(amount), txn_type=txn_type, occurred_on=NOW.date(), created_at=NOW
    )


# -----------------------------------------------------------------------------
# Pure computation
# -----------------------------------------------------------------------------


def test_compute_progress_nets_income_against_expense():
    result = compute_progress(_goal(), [_txn("300"), _txn("200"), _txn("50", "expense")], NOW)

    assert result.current_amount == Decimal("450")
    assert result.status == ACTIVE


@pytest.mark.parametrize(
    "txns",
    [
        [],
        [("100", "expense")],
        [("10", "income"), ("500", "expense")],
    ],
)
def test_compute_progress_never_negative(txns):
    result = compute_progress(_goal(), [_txn(a, t) for a, t in txns], NOW)

    assert result.current_amount >= 0
    assert result.current_amount == Decimal("0")


@pytest.mark.parametrize("prior", [ACTIVE, COMPLETED, CANCELLED])
def test_reaching_target_completes_regardless_of_prior_status(prior):
    goal = _goal(target="500", status=prior, deadline=date(2026, 1, 1))

    result = compute_progress(goal, [_txn("500")], NOW)

    assert result.status == COMPLETED


def test_overdue_active_goal_is_cancelled():
    goal = _goal(deadline=NOW.date() - timedelta(days=1))

    result = compute_progress(goal, [_txn("10")], NOW)

    assert result.status == CANCELLED


def test_deadline_today_is_not_overdue():
    goal = _goal(deadline=NOW.date())

    assert compute_progress(goal, [_txn("10")], NOW).status == ACTIVE


def test_overdue_non_active_goal_returns_to_active():
    # Cancellation only triggers from a prior active status; anything else
    # below target falls through to active.
    goal = _goal(status=COMPLETED, deadline=NOW.date() - timedelta(days=3))

    assert compute_progress(goal, [_txn("10")], NOW).status == ACTIVE


def test_progress_percentage_caps_and_handles_zero_target():
    assert progress_percentage(_goal(target="1000", current="250")) == pytest.approx(25.0)
    assert progress_percentage(_goal(target="1000", current="1500")) == pytest.approx(100.0)
    assert progress_percentage(_goal(target="0", current="10")) == 0.0
    assert progress_percentage(_goal(target="-5", current="10")) == 0.0


def test_is_achieved():
    assert is_achieved(_goal(target="100", current="100"))
    assert not is_achieved(_goal(target="100", current="99.99"))


def test_days_remaining_never_negative():
    clock = FixedClock(NOW)

    assert days_remaining(_goal(deadline=date(2026, 3, 25)), clock) == 10
    assert days_remaining(_goal(deadline=date(2026, 3, 15)), clock) == 0
    assert days_remaining(_goal(deadline=date(2026, 3, 1)), clock) == 0


# -----------------------------------------------------------------------------
# Persistence through the calculator
# -----------------------------------------------------------------------------


def test_category_goal_tracks_only_its_category(engine_ctx, category_factory, goal_factory, record):
    savings = category_factory("Savings", "income")
    salary = category_factory("Salary", "income")
    goal = goal_factory(1000, category=savings)

    engine_ctx.clock.advance(minutes=1)
    record("300", category=savings)
    record("200", category=savings)
    record("900", category=salary)

    fresh = engine_ctx.goal_repo.get_by_id(goal.id, user_id=goal.user_id)
    assert fresh.current_amount == Decimal("500")
    assert fresh.status == ACTIVE


def test_goal_completes_when_target_reached(engine_ctx, category_factory, goal_factory, record):
    savings = category_factory("Savings", "income")
    goal = goal_factory(1000, category=savings)

    engine_ctx.clock.advance(minutes=1)
    record("300", category=savings)
    record("200", category=savings)
    record("700", category=savings)

    fresh = engine_ctx.goal_repo.get_by_id(goal.id, user_id=goal.user_id)
    assert fresh.current_amount == Decimal("1200")
    assert fresh.status == COMPLETED


def test_transactions_written_before_goal_are_ignored(engine_ctx, category_factory, goal_factory, record):
    savings = category_factory("Savings", "income")
    record("400", category=savings)
    engine_ctx.clock.advance(minutes=1)

    goal = goal_factory(1000, category=savings)
    engine_ctx.clock.advance(minutes=1)
    # Backdated business date still counts: scope is by creation time
    record("50", category=savings, when=date(2025, 1, 1))

    fresh = engine_ctx.goal_repo.get_by_id(goal.id, user_id=goal.user_id)
    assert fresh.current_amount == Decimal("50")


def test_general_goal_counts_whole_ledger(engine_ctx, category_factory, goal_factory, record):
    food = category_factory("Food", "expense")
    goal = goal_factory(2000)

    engine_ctx.clock.advance(minutes=1)
    record("1000")
    record("250", "expense", category=food)

    fresh = engine_ctx.goal_repo.get_by_id(goal.id, user_id=goal.user_id)
    assert fresh.current_amount == Decimal("750")


def test_recompute_is_idempotent_except_updated_at(engine_ctx, goal_factory, record, user):
    goal = goal_factory(1000)
    engine_ctx.clock.advance(minutes=1)
    record("100")

    first = engine_ctx.calculator.recompute_by_id(goal.id, owner_id=user.id)
    engine_ctx.clock.advance(minutes=5)
    second = engine_ctx.calculator.recompute_by_id(goal.id, owner_id=user.id)

    assert (first.current_amount, first.status) == (second.current_amount, second.status)
    assert second.updated_at > first.updated_at


def test_overdue_goal_cancelled_on_recompute(engine_ctx, goal_factory, force_goal_state, user):
    goal = goal_factory(1000, deadline=date(2026, 3, 20))
    stale = force_goal_state(goal, deadline=date(2026, 3, 14))

    result = engine_ctx.calculator.recompute(stale, owner_id=user.id)

    assert result.status == CANCELLED
    assert result.current_amount == Decimal("0")


def test_completed_goal_reverts_when_amount_drops(engine_ctx, goal_factory, record, user):
    goal = goal_factory(100)
    engine_ctx.clock.advance(minutes=1)
    txn = record("150")
    assert engine_ctx.goal_repo.get_by_id(goal.id, user_id=user.id).status == COMPLETED

    engine_ctx.writer.delete(txn.id, owner_id=user.id)
    # Terminal goals are skipped by the synchronizer...
    assert engine_ctx.goal_repo.get_by_id(goal.id, user_id=user.id).status == COMPLETED

    # ...but a direct recompute re-derives status from scratch
    result = engine_ctx.calculator.recompute_by_id(goal.id, owner_id=user.id)
    assert result.status == ACTIVE
    assert result.current_amount == Decimal("0")


def test_recompute_rejects_foreign_goal(engine_ctx, goal_factory, other_user):
    goal = goal_factory(500)

    with pytest.raises(OwnershipViolation):
        engine_ctx.calculator.recompute(goal, owner_id=other_user.id)
    with pytest.raises(OwnershipViolation):
        engine_ctx.calculator.recompute_by_id(goal.id, owner_id=other_user.id)


def test_failed_goal_write_leaves_prior_state(
    engine_ctx, db_engine, goal_factory, force_goal_state, record, user
):
    goal = goal_factory(1000)
    engine_ctx.clock.advance(minutes=1)
    record("100")
    before = force_goal_state(
        goal, current_amount=Decimal("0"), status=CANCELLED, updated_at=NOW - timedelta(days=1)
    )
    engine_ctx.clock.advance(minutes=1)

    def fail_goal_update(conn, cursor, statement, parameters, context, executemany):
        if statement.lstrip().upper().startswith("UPDATE GOAL"):
            raise RuntimeError("disk full")

    event.listen(db_engine, "before_cursor_execute", fail_goal_update)
    try:
        with pytest.raises(RuntimeError, match="disk full"):
            engine_ctx.calculator.recompute(before, owner_id=user.id)
    finally:
        event.remove(db_engine, "before_cursor_execute", fail_goal_update)

    after = engine_ctx.goal_repo.get_by_id(goal.id, user_id=user.id)
    assert after.current_amount == Decimal("0")
    assert after.status == CANCELLED
    assert after.updated_at == before.updated_at

    healed = engine_ctx.calculator.recompute(before, owner_id=user.id)
    assert (healed.current_amount, healed.status) == (Decimal("100"), ACTIVE)
    assert healed.updated_at == engine_ctx.clock.now()


def test_recompute_uses_stored_goal_over_stale_copy(engine_ctx, goal_factory, record, user):
    stale = goal_factory(1000)
    engine_ctx.clock.advance(minutes=1)
    record("300")
    engine_ctx.goals.edit_goal(stale.id, owner_id=user.id, target_amount=Decimal("200"))

    result = engine_ctx.calculator.recompute(stale, owner_id=user.id)

    assert result.target_amount == Decimal("200")
    assert result.status == COMPLETED


def test_create_goal_validates_target_and_category(engine_ctx, category_factory, other_user, user):
    foreign = category_factory("Theirs", owner=other_user)

    with pytest.raises(ValueError):
        engine_ctx.goals.create_goal(
            owner_id=user.id, name="x", target_amount=Decimal("0"), deadline=date(2026, 5, 1)
        )
    with pytest.raises(OwnershipViolation):
        engine_ctx.goals.create_goal(
            owner_id=user.id,
            name="x",
            target_amount=Decimal("10"),
            deadline=date(2026, 5, 1),
            category_id=foreign.id,
        )


def test_edit_goal_recomputes_terminal_goal(engine_ctx, goal_factory, record, user):
    goal = goal_factory(100)
    engine_ctx.clock.advance(minutes=1)
    record("150")
    assert engine_ctx.goal_repo.get_by_id(goal.id, user_id=user.id).status == COMPLETED

    edited = engine_ctx.goals.edit_goal(goal.id, owner_id=user.id, target_amount=Decimal("500"))

    assert edited.target_amount == Decimal("500")
    assert edited.current_amount == Decimal("150")
    assert edited.status == ACTIVE


def test_goal_targets_are_limited_to_cents(engine_ctx, goal_factory, user):
    with pytest.raises(ValueError, match="two decimal places"):
        engine_ctx.goals.create_goal(
            owner_id=user.id, name="x", target_amount=Decimal("10.001"), deadline=date(2026, 5, 1)
        )

    goal = goal_factory("250.50")
    with pytest.raises(ValueError, match="two decimal places"):
        engine_ctx.goals.edit_goal(goal.id, owner_id=user.id, target_amount=Decimal("99.999"))
    assert engine_ctx.goal_repo.get_by_id(goal.id, user_id=user.id).target_amount == Decimal("250.50")


def test_delete_goal_checks_owner(engine_ctx, goal_factory, other_user, user):
    goal = goal_factory(500)

    with pytest.raises(OwnershipViolation):
        engine_ctx.goals.delete_goal(goal.id, owner_id=other_user.id)
    assert engine_ctx.goal_repo.get_by_id(goal.id, user_id=user.id) is not None

    with pytest.raises(ValueError):
        engine_ctx.goals.delete_goal(goal.id + 999, owner_id=user.id)

    engine_ctx.goals.delete_goal(goal.id, owner_id=user.id)
    assert engine_ctx.goal_repo.get_by_id(goal.id, user_id=user.id) is None
    assert engine_ctx.goal_repo.owner_of(goal.id) is None
