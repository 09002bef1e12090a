import datetime as dt
from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from findash.api.deps import CurrentUser, Filters, Page, SessionDep
from findash.core.config import get_settings
from findash.db import models
from findash.schemas.common import MessageResponse
from findash.schemas.transactions import (
    CategoryStat,
    Transaction,
    TransactionCreate,
    TransactionList,
    TransactionStats,
    TransactionUpdate,
    TypeCategoryStats,
    TypeStat,
    transaction_to_schema,
)
from findash.services.aggregation import type_stats
from findash.services.pagination import paginate
from findash.services.query import TransactionQuery
from findash.services.sample import SAMPLE_OWNER_ID, load_sample_transactions

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("", response_model=TransactionList)
async def list_transactions(
    user: CurrentUser, session: SessionDep, filters: Filters, page: Page
) -> TransactionList:
    query = filters.for_owner(user.id)
    stmt = query.statement().offset(page.offset).limit(page.limit)

    rows = (await session.scalars(stmt)).all()
    total = await session.scalar(query.count_statement()) or 0
    return TransactionList(
        transactions=[transaction_to_schema(tx) for tx in rows],
        pagination=page.meta(total),
    )


@router.get("/stats", response_model=TransactionStats)
async def transaction_stats(
    user: CurrentUser,
    session: SessionDep,
    start_date: Annotated[dt.date | None, Query(alias="startDate")] = None,
    end_date: Annotated[dt.date | None, Query(alias="endDate")] = None,
) -> TransactionStats:
    query = TransactionQuery(owner_id=user.id, start_date=start_date, end_date=end_date)
    rows = (await session.scalars(query.statement())).all()

    stats = type_stats(rows)
    return TransactionStats(
        stats=[
            TypeStat(type=s.type, total=float(s.total), count=s.count, avg_amount=float(s.average))
            for s in stats
        ],
        category_stats=[
            TypeCategoryStats(
                type=s.type,
                categories=[
                    CategoryStat(name=c.name, total=float(c.total), count=c.count)
                    for c in s.categories
                ],
            )
            for s in stats
        ],
    )


@router.get("/sample", response_model=TransactionList)
async def sample_transactions(filters: Filters, page: Page) -> TransactionList:
    records = load_sample_transactions(get_settings().sample_data_path)
    matched = filters.for_owner(SAMPLE_OWNER_ID).apply(records)
    items, meta = paginate(matched, page)
    return TransactionList(transactions=items, pagination=meta)


@router.post("", response_model=Transaction, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    body: TransactionCreate, user: CurrentUser, session: SessionDep
) -> Transaction:
    tx = models.Transaction(
        user_id=user.id,
        type=body.type,
        amount=Decimal(str(body.amount)),
        description=body.description,
        category=body.category,
        date=body.date,
        notes=body.notes,
        tags=list(body.tags),
    )
    session.add(tx)
    await session.commit()
    await session.refresh(tx)
    logger.info("Transaction created", user_id=user.id, transaction_id=tx.id, type=tx.type)
    return transaction_to_schema(tx)


async def _get_owned(session: AsyncSession, user_id: int, transaction_id: int) -> models.Transaction:
    stmt = select(models.Transaction).where(
        models.Transaction.id == transaction_id,
        models.Transaction.user_id == user_id,
    )
    tx = await session.scalar(stmt)
    if tx is None:
        # foreign rows are reported exactly like missing ones
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")
    return tx


@router.put("/{transaction_id}", response_model=Transaction)
async def update_transaction(
    transaction_id: int, body: TransactionUpdate, user: CurrentUser, session: SessionDep
) -> Transaction:
    tx = await _get_owned(session, user.id, transaction_id)
    changes = body.changes()
    if "amount" in changes:
        changes["amount"] = Decimal(str(changes["amount"]))

    for name, value in changes.items():
        setattr(tx, name, value)
    await session.commit()
    await session.refresh(tx)
    logger.info("Transaction updated", user_id=user.id, transaction_id=tx.id, fields=sorted(changes))
    return transaction_to_schema(tx)


@router.delete("/{transaction_id}", response_model=MessageResponse)
async def delete_transaction(
    transaction_id: int, user: CurrentUser, session: SessionDep
) -> MessageResponse:
    tx = await _get_owned(session, user.id, transaction_id)
    await session.delete(tx)
    await session.commit()
    logger.info("Transaction deleted", user_id=user.id, transaction_id=transaction_id)
    return MessageResponse(message="Transaction deleted successfully")
