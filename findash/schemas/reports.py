import datetime as dt
from typing import Literal, Optional

from pydantic import Field

from findash.schemas.common import CamelModel
from findash.schemas.transactions import Transaction, TransactionType


class ExportSummary(CamelModel):
    total_revenue: float
    total_expenses: float
    net_profit: float
    profit_margin: float
    transaction_count: int


class CategorySplit(CamelModel):
    income: float = 0.0
    expense: float = 0.0


class DashboardExport(CamelModel):
    summary: ExportSummary
    category_breakdown: dict[str, CategorySplit]
    transactions: list[Transaction]
    exported_at: dt.datetime
    user_id: int
    period: str


class ReportRequest(CamelModel):
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    format: Literal["json", "csv"] = "json"
    include_categories: list[str] = Field(default_factory=list)
    exclude_categories: list[str] = Field(default_factory=list)
    types: list[TransactionType] = Field(default_factory=lambda: ["income", "expense"])


class ReportPeriod(CamelModel):
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None


class ReportFilters(CamelModel):
    include_categories: list[str]
    exclude_categories: list[str]
    types: list[str]


class ReportSummary(CamelModel):
    total_income: float
    total_expenses: float
    net_profit: float
    transaction_count: int


class Report(CamelModel):
    period: ReportPeriod
    filters: ReportFilters
    summary: ReportSummary
    transactions: list[Transaction]
    generated_at: dt.datetime
