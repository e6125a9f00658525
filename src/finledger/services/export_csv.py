"""CSV export of a built report."""

from __future__ import annotations

import csv
from pathlib import Path

from .reports import ReportBundle

HEADERS = ["date", "description", "category", "type", "amount"]


def export_report_csv(report: ReportBundle, *, output_path: Path) -> Path:
    """Write the report's transactions, then a summary block, to ``output_path``.

    Only the transaction list, totals, category totals and period label are
    read, so any caller holding a ``ReportBundle`` can export it.
    """

    output_path.parent.mkdir(parents=True, exist_ok=True)

    # Use newline='' for csv on Windows
    with output_path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.writer(fh, quoting=csv.QUOTE_MINIMAL)
        writer.writerow(HEADERS)
        for txn in report.transactions:
            writer.writerow(
                [
                    txn.occurred_on.isoformat(),
                    txn.description,
                    txn.category.name if txn.category else "",
                    txn.txn_type,
                    f"{txn.amount:.2f}",
                ]
            )

        writer.writerow([])
        writer.writerow(["summary", report.period])
        writer.writerow(["income", f"{report.totals.income:.2f}"])
        writer.writerow(["expenses", f"{report.totals.expenses:.2f}"])
        writer.writerow(["net", f"{report.totals.net:.2f}"])
        writer.writerow(["count", report.totals.count])

        writer.writerow([])
        writer.writerow(["category", "income", "expenses", "net", "count"])
        for row in report.category_totals:
            writer.writerow(
                [row.name, f"{row.income:.2f}", f"{row.expenses:.2f}", f"{row.net:.2f}", row.count]
            )

    return output_path
