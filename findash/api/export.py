from typing import Annotated

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse, Response
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from findash.api.deps import CurrentUser, Filters, SessionDep
from findash.schemas.reports import ReportRequest
from findash.schemas.transactions import transaction_to_schema
from findash.services.export import custom_report, dashboard_export, transactions_to_csv
from findash.services.query import TransactionQuery

router = APIRouter(prefix="/export", tags=["export"])


def _attachment(filename: str) -> dict[str, str]:
    return {"Content-Disposition": f"attachment; filename={filename}"}


def _csv_response(content: str, filename: str) -> Response:
    return Response(content=content, media_type="text/csv", headers=_attachment(filename))


async def _fetch(session: AsyncSession, query: TransactionQuery) -> list:
    rows = (await session.scalars(query.statement())).all()
    return [transaction_to_schema(tx) for tx in rows]


@router.get("/transactions/csv")
async def export_transactions_csv(user: CurrentUser, session: SessionDep, filters: Filters) -> Response:
    # exports always list newest first regardless of the requested sort
    query = filters.for_owner(user.id, sort_by="date", sort_order="desc")
    transactions = await _fetch(session, query)
    content = transactions_to_csv(transactions)
    logger.info("Exported transactions CSV", user_id=user.id, rows=len(transactions))
    return _csv_response(content, "transactions.csv")


@router.get("/dashboard/json")
async def export_dashboard_json(
    user: CurrentUser,
    session: SessionDep,
    period: Annotated[str, Query()] = "monthly",
) -> JSONResponse:
    transactions = await _fetch(session, TransactionQuery(owner_id=user.id))
    payload = dashboard_export(transactions, user_id=user.id, period=period)
    logger.info("Exported dashboard JSON", user_id=user.id, rows=len(transactions))
    return JSONResponse(content=payload, headers=_attachment("dashboard-data.json"))


@router.post("/report")
async def export_report(body: ReportRequest, user: CurrentUser, session: SessionDep) -> Response:
    query = TransactionQuery(
        owner_id=user.id,
        start_date=body.start_date,
        end_date=body.end_date,
        types=body.types,
        include_categories=body.include_categories,
        exclude_categories=body.exclude_categories,
    )
    transactions = await _fetch(session, query)
    logger.info(
        "Generated custom report", user_id=user.id, format=body.format, rows=len(transactions)
    )
    if body.format == "csv":
        return _csv_response(transactions_to_csv(transactions), "custom-report.csv")
    return JSONResponse(content=custom_report(transactions, body))
