from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Annotated, Any

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from findash.core.security import TokenError, decode_access_token
from findash.db import models
from findash.db.session import get_session
from findash.services.pagination import PageRequest
from findash.services.query import TransactionQuery

bearer_scheme = HTTPBearer(auto_error=False)

SessionDep = Annotated[AsyncSession, Depends(get_session)]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    session: SessionDep,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> models.User:
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Access token required")
    try:
        claims = decode_access_token(credentials.credentials)
    except TokenError as exc:
        logger.warning("Rejected bearer token", error=str(exc))
        raise _unauthorized("Invalid or expired token") from exc

    user = await session.get(models.User, claims["sub"])
    if user is None:
        raise _unauthorized("Invalid or expired token")
    return user


CurrentUser = Annotated[models.User, Depends(get_current_user)]


async def require_admin(user: CurrentUser) -> models.User:
    if user.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user


@dataclass
class FilterParams:
    """Filter/sort query string shared by listing, sample and CSV export endpoints."""

    type: str | None = None
    category: str | None = None
    search: str | None = None
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    sort_by: str = "date"
    sort_order: str = "desc"

    def for_owner(self, owner_id: int, **overrides: Any) -> TransactionQuery:
        params = {
            "type": self.type,
            "category": self.category,
            "search": self.search,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "sort_by": self.sort_by,
            "sort_order": self.sort_order,
        }
        params.update(overrides)
        return TransactionQuery(owner_id=owner_id, **params)


def filter_params(
    type: Annotated[str | None, Query()] = None,
    category: Annotated[str | None, Query()] = None,
    search: Annotated[str | None, Query()] = None,
    start_date: Annotated[dt.date | None, Query(alias="startDate")] = None,
    end_date: Annotated[dt.date | None, Query(alias="endDate")] = None,
    sort_by: Annotated[str, Query(alias="sortBy")] = "date",
    sort_order: Annotated[str, Query(alias="sortOrder")] = "desc",
) -> FilterParams:
    return FilterParams(
        type=type,
        category=category,
        search=search,
        start_date=start_date,
        end_date=end_date,
        sort_by=sort_by,
        sort_order=sort_order,
    )


def page_params(
    page: Annotated[str | None, Query()] = None,
    limit: Annotated[str | None, Query()] = None,
) -> PageRequest:
    return PageRequest.from_params(page, limit)


Filters = Annotated[FilterParams, Depends(filter_params)]
Page = Annotated[PageRequest, Depends(page_params)]
