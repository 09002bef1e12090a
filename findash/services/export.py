"""CSV and JSON renderings of transaction sets.

Rendering is all-or-nothing: the whole payload is built in memory before it is
returned, and any error propagates to the caller.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime, timezone
from typing import Any

from findash.schemas.reports import (
    CategorySplit,
    DashboardExport,
    ExportSummary,
    Report,
    ReportFilters,
    ReportPeriod,
    ReportRequest,
    ReportSummary,
)
from findash.schemas.transactions import Transaction
from findash.services.aggregation import category_split, overview, to_decimal

CSV_HEADER = "Date,Type,Amount,Description,Category,Notes"


def format_short_date(value: date) -> str:
    """US short date, e.g. ``1/5/2024``."""
    return f"{value.month}/{value.day}/{value.year}"


def format_amount(amount: Any, tx_type: str) -> str:
    """Signed amount without trailing zeros; expenses are negative."""
    value = to_decimal(amount)
    if tx_type == "expense" and value != 0:
        value = -value
    return format(value.normalize(), "f")


def quote(value: str | None) -> str:
    return '"' + (value or "").replace('"', '""') + '"'


def csv_row(tx: Any) -> str:
    return ",".join(
        (
            format_short_date(tx.date),
            tx.type,
            format_amount(tx.amount, tx.type),
            quote(tx.description),
            quote(tx.category),
            quote(tx.notes),
        )
    )


def transactions_to_csv(transactions: Iterable[Any]) -> str:
    rows = [csv_row(tx) for tx in transactions]
    return CSV_HEADER + "\n" + "\n".join(rows)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def dashboard_export(
    transactions: Sequence[Transaction],
    *,
    user_id: int,
    period: str,
    exported_at: datetime | None = None,
) -> dict[str, Any]:
    totals = overview(transactions)
    payload = DashboardExport(
        summary=ExportSummary(
            total_revenue=float(totals.total_revenue),
            total_expenses=float(totals.total_expenses),
            net_profit=float(totals.net_profit),
            profit_margin=totals.profit_margin,
            transaction_count=len(transactions),
        ),
        category_breakdown={
            name: CategorySplit(income=float(split["income"]), expense=float(split["expense"]))
            for name, split in category_split(transactions).items()
        },
        transactions=list(transactions),
        exported_at=exported_at or _now(),
        user_id=user_id,
        period=period,
    )
    return payload.model_dump(mode="json", by_alias=True)


def custom_report(
    transactions: Sequence[Transaction],
    request: ReportRequest,
    *,
    generated_at: datetime | None = None,
) -> dict[str, Any]:
    totals = overview(transactions)
    report = Report(
        period=ReportPeriod(start_date=request.start_date, end_date=request.end_date),
        filters=ReportFilters(
            include_categories=request.include_categories,
            exclude_categories=request.exclude_categories,
            types=list(request.types),
        ),
        summary=ReportSummary(
            total_income=float(totals.total_revenue),
            total_expenses=float(totals.total_expenses),
            net_profit=float(totals.net_profit),
            transaction_count=len(transactions),
        ),
        transactions=list(transactions),
        generated_at=generated_at or _now(),
    )
    return report.model_dump(mode="json", by_alias=True)
