"""Command line entry points for FinLedger."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Optional

import click

from .config import BaseConfig
from .context import EngineContext, create_engine_context
from .logging_config import setup_logging


def _context(ctx: click.Context) -> EngineContext:
    engine_ctx = ctx.obj.get("engine") if ctx.obj else None
    if engine_ctx is None:
        engine_ctx = create_engine_context(ctx.obj["config"])
        ctx.obj["engine"] = engine_ctx
    return engine_ctx


def _parse_date(_ctx, _param, value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise click.BadParameter(f"expected YYYY-MM-DD, got {value!r}") from exc


@click.group()
@click.pass_context
def main(ctx: click.Context) -> None:
    """Ledger aggregates and savings goal tracking."""
    ctx.ensure_object(dict)
    config = ctx.obj.get("config") or BaseConfig()
    ctx.obj["config"] = config
    setup_logging(config)


@main.command("init-db")
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create the database schema."""
    engine_ctx = _context(ctx)
    click.echo(f"Database ready: {engine_ctx.config.DATABASE_URL}")


@main.command()
@click.option("--user", "owner_id", type=int, required=True, help="Owner id")
@click.pass_context
def dashboard(ctx: click.Context, owner_id: int) -> None:
    """Show balance, current-month totals and recent transactions."""
    from .services.dashboard import build_dashboard

    engine_ctx = _context(ctx)
    data = build_dashboard(
        ledger=engine_ctx.ledger,
        owner_id=owner_id,
        clock=engine_ctx.clock,
        recent_limit=engine_ctx.config.RECENT_TRANSACTIONS_LIMIT,
    )
    if not data.has_transactions:
        click.echo("No transactions yet. Record one to see your dashboard.")
        return
    click.echo(f"Balance:          {data.current_balance:>12.2f}")
    click.echo(f"Income (month):   {data.monthly_income:>12.2f}")
    click.echo(f"Expenses (month): {data.monthly_expenses:>12.2f}")
    click.echo(f"Net (month):      {data.monthly_net:>12.2f}")
    for row in data.category_summary:
        name = row.category.name if row.category else "Uncategorized"
        click.echo(f"  {name:<20} {row.type:<8} {row.total:>10.2f} ({row.count})")
    click.echo("Recent:")
    for txn in data.recent_transactions:
        click.echo(f"  {txn.occurred_on.isoformat()} {txn.txn_type:<8} {txn.amount:>10.2f} {txn.description}")


@main.command()
@click.option("--user", "owner_id", type=int, required=True, help="Owner id")
@click.option("--months", type=click.IntRange(min=1), default=None, help="Months in the window")
@click.option("--png", "png_path", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.pass_context
def chart(ctx: click.Context, owner_id: int, months: Optional[int], png_path: Optional[Path]) -> None:
    """Print (or render) the monthly income/expense series."""
    from .services.charts import build_chart_series, export_chart_png

    engine_ctx = _context(ctx)
    series = build_chart_series(
        ledger=engine_ctx.ledger,
        owner_id=owner_id,
        months=months or engine_ctx.config.CHART_MONTHS,
        clock=engine_ctx.clock,
    )
    for row in series.rows():
        click.echo(
            f"{row['label']:<9} income {row['income']:>10.2f}  expenses {row['expenses']:>10.2f}"
            f"  balance {row['balance']:>10.2f}"
        )
    if png_path is not None:
        click.echo(f"Chart written: {export_chart_png(series, output_path=png_path)}")


@main.command()
@click.option("--user", "owner_id", type=int, required=True, help="Owner id")
@click.option("--start", "start_date", callback=_parse_date, default=None, help="YYYY-MM-DD")
@click.option("--end", "end_date", callback=_parse_date, default=None, help="YYYY-MM-DD")
@click.option("--category", "category_id", type=int, default=None)
@click.option("--type", "txn_type", type=click.Choice(["income", "expense"]), default=None)
@click.option("--csv", "csv_path", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.pass_context
def report(
    ctx: click.Context,
    owner_id: int,
    start_date: Optional[date],
    end_date: Optional[date],
    category_id: Optional[int],
    txn_type: Optional[str],
    csv_path: Optional[Path],
) -> None:
    """Build a filtered report, optionally exporting it as CSV."""
    from .services.export_csv import export_report_csv
    from .services.reports import ReportFilters, build_report

    engine_ctx = _context(ctx)
    filters = ReportFilters(
        start_date=start_date, end_date=end_date, category_id=category_id, txn_type=txn_type
    )
    bundle = build_report(ledger=engine_ctx.ledger, owner_id=owner_id, filters=filters)
    click.echo(f"Period: {bundle.period}")
    if not bundle.has_data:
        click.echo("No transactions match these filters.")
        return
    click.echo(
        f"Income {bundle.totals.income:.2f} | Expenses {bundle.totals.expenses:.2f} | "
        f"Net {bundle.totals.net:.2f} | {bundle.totals.count} transaction(s)"
    )
    for row in bundle.category_totals:
        click.echo(f"  {row.name:<20} {row.total:>10.2f} ({row.count})")
    if csv_path is not None:
        click.echo(f"Report written: {export_report_csv(bundle, output_path=csv_path)}")


@main.group()
def goals() -> None:
    """Savings goal commands."""


@goals.command("stats")
@click.option("--user", "owner_id", type=int, required=True, help="Owner id")
@click.pass_context
def goals_stats(ctx: click.Context, owner_id: int) -> None:
    """Show goal counts, completion rate and deadline alerts."""
    engine_ctx = _context(ctx)
    notifications = engine_ctx.notifications
    stats = notifications.achievement_stats(owner_id)
    click.echo(
        f"{stats.total} goal(s): {stats.completed} completed, {stats.active} active, "
        f"{stats.cancelled} cancelled ({stats.completion_rate}% complete)"
    )
    for goal in notifications.recently_achieved(owner_id):
        click.echo(f"  achieved: {goal.name}")
    for goal in notifications.expiring_within(owner_id, engine_ctx.config.EXPIRING_DAYS):
        click.echo(f"  expiring ({notifications.urgency_level(goal.deadline)}): {goal.name}")
    for goal in notifications.overdue(owner_id):
        click.echo(f"  overdue: {goal.name}")


@goals.command("recompute")
@click.option("--user", "owner_id", type=int, required=True, help="Owner id")
@click.option("--goal", "goal_id", type=int, default=None, help="Only this goal")
@click.pass_context
def goals_recompute(ctx: click.Context, owner_id: int, goal_id: Optional[int]) -> None:
    """Re-derive goal progress from the ledger."""
    from .services.goal_progress import progress_percentage

    engine_ctx = _context(ctx)
    if goal_id is not None:
        targets = [engine_ctx.calculator.recompute_by_id(goal_id, owner_id=owner_id)]
    else:
        targets = [
            engine_ctx.calculator.recompute(goal, owner_id=owner_id)
            for goal in engine_ctx.goal_repo.list_all(user_id=owner_id)
        ]
    for goal in targets:
        click.echo(
            f"{goal.name:<24} {goal.current_amount:>10.2f} / {goal.target_amount:<10.2f} "
            f"{progress_percentage(goal):5.1f}% {goal.status}"
        )


if __name__ == "__main__":  # pragma: no cover
    main()
