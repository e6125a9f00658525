"""Monthly income/expense series for trend charts."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from pathlib import Path

import matplotlib.pyplot as plt

from ..clock import Clock, SystemClock
from ..domain.repositories.ledger import LedgerQuery, LedgerReader
from ..models.transaction import EXPENSE, INCOME
from .dashboard import month_bounds

DEFAULT_MONTHS = 6

INCOME_COLOR = "rgba(40, 167, 69, 1)"
EXPENSE_COLOR = "rgba(220, 53, 69, 1)"
BALANCE_COLOR = "rgba(0, 123, 255, 1)"


@dataclass
class ChartSeries:
    """Aligned per-month series, oldest month first.

    ``balance`` starts from zero at the first month of the window; it is not
    the owner's lifetime balance.
    """

    labels: list[str] = field(default_factory=list)
    months: list[str] = field(default_factory=list)
    income: list[Decimal] = field(default_factory=list)
    expenses: list[Decimal] = field(default_factory=list)
    net: list[Decimal] = field(default_factory=list)
    balance: list[Decimal] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.labels)

    def rows(self) -> list[dict[str, object]]:
        """One dict per month, the raw form of the series."""
        return [
            {
                "label": self.labels[i],
                "month": self.months[i],
                "income": self.income[i],
                "expenses": self.expenses[i],
                "net": self.net[i],
                "balance": self.balance[i],
            }
            for i in range(len(self))
        ]


def month_starts(today: date, months: int) -> list[date]:
    """First days of the ``months`` calendar months ending with today's month."""
    starts = []
    year, month = today.year, today.month
    for _ in range(months):
        starts.append(date(year, month, 1))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(starts))


def build_chart_series(
    *,
    ledger: LedgerReader,
    owner_id: int,
    months: int = DEFAULT_MONTHS,
    clock: Clock | None = None,
) -> ChartSeries:
    """Income, expenses, net and windowed running balance for the last N months."""
    if months < 1:
        raise ValueError("months must be at least 1")

    clock = clock or SystemClock()
    series = ChartSeries()
    running = Decimal("0.00")
    for start in month_starts(clock.today(), months):
        first, last = month_bounds(start)
        totals = ledger.sum_by_type(LedgerQuery(user_id=owner_id, start_date=first, end_date=last))
        net = totals[INCOME] - totals[EXPENSE]
        running += net
        series.labels.append(start.strftime("%b/%Y"))
        series.months.append(start.strftime("%Y-%m"))
        series.income.append(totals[INCOME])
        series.expenses.append(totals[EXPENSE])
        series.net.append(net)
        series.balance.append(running)
    return series


def _dataset(label: str, data: list[Decimal], color: str, **extra: object) -> dict[str, object]:
    dataset: dict[str, object] = {
        "label": label,
        "data": [float(value) for value in data],
        "backgroundColor": color.replace(", 1)", ", 0.2)"),
        "borderColor": color,
        "borderWidth": 2,
        "fill": False,
    }
    dataset.update(extra)
    return dataset


def chart_datasets(series: ChartSeries) -> dict[str, object]:
    """Chart.js-shaped bundle with income, expense and running balance lines."""
    return {
        "labels": list(series.labels),
        "datasets": [
            _dataset("Income", series.income, INCOME_COLOR),
            _dataset("Expenses", series.expenses, EXPENSE_COLOR),
            _dataset("Running balance", series.balance, BALANCE_COLOR),
        ],
    }


def balance_only_datasets(series: ChartSeries) -> dict[str, object]:
    """Chart.js-shaped bundle with only the running balance, filled."""
    return {
        "labels": list(series.labels),
        "datasets": [
            _dataset("Balance", series.balance, BALANCE_COLOR, fill=True, tension=0.4),
        ],
    }


def export_chart_png(series: ChartSeries, *, output_path: Path) -> Path:
    """Render the three series as a line chart PNG and return the path."""

    fig, ax = plt.subplots(figsize=(10, 5))
    x = range(len(series))
    ax.plot(x, [float(v) for v in series.income], marker="o", color="#28A745", label="Income")
    ax.plot(x, [float(v) for v in series.expenses], marker="o", color="#DC3545", label="Expenses")
    ax.plot(x, [float(v) for v in series.balance], marker="o", color="#007BFF", label="Running balance")
    ax.set_xticks(list(x))
    ax.set_xticklabels(series.labels, rotation=30, ha="right")
    ax.axhline(0, color="#9CA3AF", linewidth=0.8)
    ax.set_title("Monthly cash flow", fontsize=14, fontweight="bold")
    ax.legend(loc="upper left", fontsize=9, framealpha=0.9)
    ax.grid(axis="y", alpha=0.3)
    fig.tight_layout()

    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, bbox_inches="tight", dpi=120)
    plt.close(fig)
    return output_path
