from __future__ import annotations

import calendar
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Any

from findash.services.aggregation import ZERO, PeriodTotals, overview, profit_margin

DASHBOARD_PERIODS = ("weekly", "monthly", "yearly")


@dataclass
class Summary:
    total_revenue: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    profit_margin: float
    transaction_count: int
    revenue_growth: float = 0.0
    expense_growth: float = 0.0


def growth(current: Decimal, previous: Decimal | None) -> float:
    """Percentage change against the previous period; 0 when there is nothing to compare."""
    if not previous:
        return 0.0
    return float((current - previous) / previous * 100)


def summarize(
    transactions: Iterable[Any], previous: Iterable[Any] | None = None
) -> Summary:
    """Headline report for a transaction set, with growth against ``previous`` when given."""
    current = overview(transactions)
    summary = Summary(
        total_revenue=current.total_revenue,
        total_expenses=current.total_expenses,
        net_profit=current.net_profit,
        profit_margin=current.profit_margin,
        transaction_count=current.transaction_count,
    )
    if previous is not None:
        prior = overview(previous)
        summary.revenue_growth = growth(current.total_revenue, prior.total_revenue)
        summary.expense_growth = growth(current.total_expenses, prior.total_expenses)
    return summary


def summarize_series(series: Iterable[PeriodTotals]) -> Summary:
    revenue = expenses = ZERO
    count = 0
    for point in series:
        revenue += point.revenue
        expenses += point.expenses
        count += point.count
    net = revenue - expenses
    return Summary(
        total_revenue=revenue,
        total_expenses=expenses,
        net_profit=net,
        profit_margin=profit_margin(revenue, net),
        transaction_count=count,
    )


@dataclass(frozen=True)
class DashboardWindow:
    """Current window (open-ended on the right) plus the prior window of equal length."""

    period: str
    start: date
    previous_start: date
    previous_end: date


def resolve_window(period: str, today: date) -> DashboardWindow:
    if period not in DASHBOARD_PERIODS:
        period = "monthly"

    if period == "weekly":
        start = today - timedelta(days=6)
    elif period == "yearly":
        start = today.replace(month=1, day=1)
    else:
        start = today.replace(day=1)

    length = (today - start).days + 1
    previous_end = start - timedelta(days=1)
    previous_start = start - timedelta(days=length)
    return DashboardWindow(
        period=period, start=start, previous_start=previous_start, previous_end=previous_end
    )


def months_back(today: date, months: int) -> date:
    """Same day ``months`` earlier, clamped to the end of shorter months."""
    month_index = today.year * 12 + (today.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(today.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)
