"""Grouping and summing of already-filtered transactions.

Every function takes any iterable of objects exposing ``type``, ``amount``,
``category`` and ``date`` (ORM rows or API schemas) and sums with
:class:`~decimal.Decimal` so that revenue minus expenses equals profit exactly.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Literal

Granularity = Literal["day", "month", "year"]

TOP_CATEGORIES = 10
ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def profit_margin(revenue: Decimal, net: Decimal) -> float:
    """Net as a percentage of revenue; zero revenue gives a zero margin."""
    if revenue == 0:
        return 0.0
    return float(net / revenue * 100)


def average(total: Decimal, count: int) -> Decimal:
    return total / count if count else ZERO


@dataclass
class OverviewTotals:
    total_revenue: Decimal = ZERO
    total_expenses: Decimal = ZERO
    income_count: int = 0
    expense_count: int = 0

    @property
    def net_profit(self) -> Decimal:
        return self.total_revenue - self.total_expenses

    @property
    def profit_margin(self) -> float:
        return profit_margin(self.total_revenue, self.net_profit)

    @property
    def transaction_count(self) -> int:
        return self.income_count + self.expense_count

    @property
    def average_income(self) -> Decimal:
        return average(self.total_revenue, self.income_count)

    @property
    def average_expense(self) -> Decimal:
        return average(self.total_expenses, self.expense_count)


def overview(transactions: Iterable[Any]) -> OverviewTotals:
    totals = OverviewTotals()
    for tx in transactions:
        amount = to_decimal(tx.amount)
        if tx.type == "income":
            totals.total_revenue += amount
            totals.income_count += 1
        elif tx.type == "expense":
            totals.total_expenses += amount
            totals.expense_count += 1
    return totals


@dataclass
class PeriodTotals:
    period: str
    start: date
    revenue: Decimal = ZERO
    expenses: Decimal = ZERO
    count: int = 0

    @property
    def profit(self) -> Decimal:
        return self.revenue - self.expenses

    @property
    def label(self) -> str:
        """Short month name for monthly buckets, the key itself otherwise."""
        if len(self.period) == 7:
            return calendar.month_abbr[self.start.month]
        return self.period


def period_start(value: date, granularity: Granularity) -> date:
    if granularity == "day":
        return value
    if granularity == "month":
        return value.replace(day=1)
    if granularity == "year":
        return value.replace(month=1, day=1)
    raise ValueError(f"unsupported granularity: {granularity}")


def period_key(value: date, granularity: Granularity) -> str:
    start = period_start(value, granularity)
    if granularity == "day":
        return start.isoformat()
    if granularity == "month":
        return f"{start.year:04d}-{start.month:02d}"
    return f"{start.year:04d}"


def _next_period(start: date, granularity: Granularity) -> date:
    if granularity == "day":
        return start + timedelta(days=1)
    if granularity == "month":
        if start.month == 12:
            return start.replace(year=start.year + 1, month=1)
        return start.replace(month=start.month + 1)
    return start.replace(year=start.year + 1)


def periodic_series(
    transactions: Iterable[Any],
    granularity: Granularity = "month",
    *,
    fill_gaps: bool = False,
) -> list[PeriodTotals]:
    """Sum revenue/expenses per period, ascending by period.

    Only periods with at least one transaction are returned unless
    ``fill_gaps`` is set, in which case zero rows are added between the first
    and last period.
    """
    buckets: dict[str, PeriodTotals] = {}
    for tx in transactions:
        tx_date = tx.date
        key = period_key(tx_date, granularity)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = PeriodTotals(period=key, start=period_start(tx_date, granularity))
        amount = to_decimal(tx.amount)
        if tx.type == "income":
            bucket.revenue += amount
        elif tx.type == "expense":
            bucket.expenses += amount
        bucket.count += 1

    series = sorted(buckets.values(), key=lambda b: b.start)
    if not fill_gaps or len(series) < 2:
        return series

    filled: list[PeriodTotals] = []
    cursor = series[0].start
    last = series[-1].start
    while cursor <= last:
        key = period_key(cursor, granularity)
        filled.append(buckets.get(key) or PeriodTotals(period=key, start=cursor))
        cursor = _next_period(cursor, granularity)
    return filled


@dataclass
class CategoryTotals:
    name: str
    total: Decimal = ZERO
    count: int = 0

    @property
    def average(self) -> Decimal:
        return average(self.total, self.count)


def _group_by_category(transactions: Iterable[Any], tx_type: str) -> list[CategoryTotals]:
    # dict keeps first-encountered order, which the stable sort below preserves for ties
    groups: dict[str, CategoryTotals] = {}
    for tx in transactions:
        if tx.type != tx_type:
            continue
        group = groups.setdefault(tx.category, CategoryTotals(name=tx.category))
        group.total += to_decimal(tx.amount)
        group.count += 1
    return list(groups.values())


def category_breakdown(
    transactions: Iterable[Any], tx_type: str, limit: int | None = TOP_CATEGORIES
) -> list[CategoryTotals]:
    """Per-category sums for one type, largest first, truncated to ``limit``."""
    ranked = sorted(_group_by_category(transactions, tx_type), key=lambda c: c.total, reverse=True)
    # sorted(reverse=True) keeps equal totals in their original order
    return ranked if limit is None else ranked[:limit]


@dataclass
class TypeTotals:
    type: str
    total: Decimal = ZERO
    count: int = 0
    categories: list[CategoryTotals] = field(default_factory=list)

    @property
    def average(self) -> Decimal:
        return average(self.total, self.count)


def type_stats(transactions: Iterable[Any]) -> list[TypeTotals]:
    """Totals per transaction type with their category split, types without rows omitted."""
    rows = list(transactions)
    stats: list[TypeTotals] = []
    for tx_type in ("income", "expense"):
        categories = _group_by_category(rows, tx_type)
        if not categories:
            continue
        stats.append(
            TypeTotals(
                type=tx_type,
                total=sum((c.total for c in categories), ZERO),
                count=sum(c.count for c in categories),
                categories=categories,
            )
        )
    return stats


def category_split(transactions: Iterable[Any]) -> dict[str, dict[str, Decimal]]:
    """Category -> {"income": sum, "expense": sum} over both types."""
    split: dict[str, dict[str, Decimal]] = {}
    for tx in transactions:
        entry = split.setdefault(tx.category, {"income": ZERO, "expense": ZERO})
        if tx.type in entry:
            entry[tx.type] += to_decimal(tx.amount)
    return split
