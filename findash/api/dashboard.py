import datetime as dt
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from findash.api.deps import CurrentUser, SessionDep
from findash.schemas.dashboard import (
    CategorySlice,
    CategoryTotal,
    DashboardOverview,
    ExpensePoint,
    ExpenseReport,
    Overview,
    PeriodPoint,
    ProfitLossReport,
    ProfitLossSummary,
    RevenuePoint,
    RevenueSeries,
)
from findash.services.aggregation import (
    CategoryTotals,
    PeriodTotals,
    category_breakdown,
    periodic_series,
)
from findash.services.query import TransactionQuery
from findash.services.summary import months_back, resolve_window, summarize, summarize_series

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def today() -> dt.date:
    return dt.date.today()


Today = Annotated[dt.date, Depends(today)]


def slice_color(index: int) -> str:
    """Chart colour for the n-th slice, golden-angle hue steps."""
    return f"hsl({(index * 137.5) % 360:g}, 70%, 50%)"


def _slices(categories: list[CategoryTotals]) -> list[CategorySlice]:
    return [
        CategorySlice(name=c.name, value=float(c.total), color=slice_color(i))
        for i, c in enumerate(categories)
    ]


def _point(p: PeriodTotals) -> PeriodPoint:
    return PeriodPoint(
        period=p.period,
        month=p.label,
        revenue=float(p.revenue),
        expenses=float(p.expenses),
        profit=float(p.profit),
    )


async def _fetch(session: AsyncSession, query: TransactionQuery) -> list:
    return list((await session.scalars(query.statement())).all())


@router.get("/overview", response_model=DashboardOverview)
async def overview(
    user: CurrentUser,
    session: SessionDep,
    today: Today,
    period: Annotated[str, Query()] = "monthly",
    fill_gaps: Annotated[bool, Query(alias="fillGaps")] = False,
) -> DashboardOverview:
    window = resolve_window(period, today)
    current = await _fetch(session, TransactionQuery(owner_id=user.id, start_date=window.start))
    previous = await _fetch(
        session,
        TransactionQuery(
            owner_id=user.id, start_date=window.previous_start, end_date=window.previous_end
        ),
    )

    summary = summarize(current, previous)
    return DashboardOverview(
        period=window.period,
        overview=Overview(
            total_revenue=float(summary.total_revenue),
            total_expenses=float(summary.total_expenses),
            net_profit=float(summary.net_profit),
            profit_margin=summary.profit_margin,
            revenue_growth=summary.revenue_growth,
            expense_growth=summary.expense_growth,
        ),
        monthly_data=[_point(p) for p in periodic_series(current, "month", fill_gaps=fill_gaps)],
        category_breakdown=_slices(category_breakdown(current, "income")),
        expense_categories=_slices(category_breakdown(current, "expense")),
    )


@router.get("/revenue", response_model=RevenueSeries)
async def revenue(
    user: CurrentUser,
    session: SessionDep,
    today: Today,
    period: Annotated[str, Query()] = "monthly",
) -> RevenueSeries:
    if period == "yearly":
        granularity, start = "year", months_back(today, 36)
    else:
        period, granularity, start = "monthly", "month", months_back(today, 12)

    rows = await _fetch(session, TransactionQuery(owner_id=user.id, type="income", start_date=start))
    return RevenueSeries(
        data=[
            RevenuePoint(period=p.period, revenue=float(p.revenue))
            for p in periodic_series(rows, granularity)
        ],
        period=period,
    )


@router.get("/expenses", response_model=ExpenseReport)
async def expenses(user: CurrentUser, session: SessionDep, today: Today) -> ExpenseReport:
    query = TransactionQuery(owner_id=user.id, type="expense", start_date=months_back(today, 12))
    rows = await _fetch(session, query)
    return ExpenseReport(
        categories=[
            CategoryTotal(name=c.name, total=float(c.total))
            for c in category_breakdown(rows, "expense", limit=None)
        ],
        monthly=[
            ExpensePoint(period=p.period, month=p.label, expenses=float(p.expenses))
            for p in periodic_series(rows, "month")
        ],
    )


@router.get("/profit-loss", response_model=ProfitLossReport)
async def profit_loss(user: CurrentUser, session: SessionDep, today: Today) -> ProfitLossReport:
    rows = await _fetch(session, TransactionQuery(owner_id=user.id, start_date=months_back(today, 12)))
    series = periodic_series(rows, "month")
    summary = summarize_series(series)
    return ProfitLossReport(
        monthly=[_point(p) for p in series],
        summary=ProfitLossSummary(
            total_revenue=float(summary.total_revenue),
            total_expenses=float(summary.total_expenses),
            net_profit=float(summary.net_profit),
            profit_margin=summary.profit_margin,
        ),
    )
