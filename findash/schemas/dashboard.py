from typing import Literal, Optional

from findash.schemas.common import CamelModel

DashboardPeriod = Literal["weekly", "monthly", "yearly"]


class Overview(CamelModel):
    total_revenue: float
    total_expenses: float
    net_profit: float
    profit_margin: float
    revenue_growth: float = 0.0
    expense_growth: float = 0.0


class PeriodPoint(CamelModel):
    period: str
    month: Optional[str] = None
    revenue: float
    expenses: float
    profit: float


class CategorySlice(CamelModel):
    name: str
    value: float
    color: str


class DashboardOverview(CamelModel):
    period: str
    overview: Overview
    monthly_data: list[PeriodPoint]
    category_breakdown: list[CategorySlice]
    expense_categories: list[CategorySlice]


class RevenuePoint(CamelModel):
    period: str
    revenue: float


class RevenueSeries(CamelModel):
    data: list[RevenuePoint]
    period: str


class CategoryTotal(CamelModel):
    name: str
    total: float


class ExpensePoint(CamelModel):
    period: str
    month: Optional[str] = None
    expenses: float


class ExpenseReport(CamelModel):
    categories: list[CategoryTotal]
    monthly: list[ExpensePoint]


class ProfitLossSummary(CamelModel):
    total_revenue: float
    total_expenses: float
    net_profit: float
    profit_margin: float


class ProfitLossReport(CamelModel):
    monthly: list[PeriodPoint]
    summary: ProfitLossSummary
