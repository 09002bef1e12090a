"""Transaction filtering shared by the database and in-memory code paths.

A :class:`TransactionQuery` is always bound to one owner. It renders to a
SQLAlchemy ``select`` for the store and to a plain predicate/sort for
sequences already in memory (the bundled sample data), so both paths agree on
what a filter means.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from loguru import logger
from sqlalchemy import Select, String, and_, cast, func, or_, select
from sqlalchemy.sql.elements import ColumnElement

from findash.db import models

TRANSACTION_TYPES = ("income", "expense")
DEFAULT_SORT_BY = "date"
DEFAULT_SORT_ORDER = "desc"

SORTABLE_COLUMNS = {
    "date": models.Transaction.date,
    "amount": models.Transaction.amount,
    "description": models.Transaction.description,
    "category": models.Transaction.category,
    "type": models.Transaction.type,
    "created_at": models.Transaction.created_at,
    "createdAt": models.Transaction.created_at,
}
# free-text columns sort without regard to case, as the in-memory sort does
CASE_INSENSITIVE_SORTS = frozenset({"description", "category"})


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _contains(haystack: Any, needle: str) -> bool:
    return needle.lower() in str(haystack or "").lower()


@dataclass
class TransactionQuery:
    owner_id: int
    type: str | None = None
    category: str | None = None
    search: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    sort_by: str = DEFAULT_SORT_BY
    sort_order: str = DEFAULT_SORT_ORDER
    types: Sequence[str] | None = None
    include_categories: Sequence[str] = field(default_factory=tuple)
    exclude_categories: Sequence[str] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        self.type = _clean(self.type)
        if self.type is not None and self.type not in TRANSACTION_TYPES:
            logger.debug("Ignoring unknown transaction type filter", value=self.type)
            self.type = None

        self.category = _clean(self.category)
        self.search = _clean(self.search)

        if self.sort_by not in SORTABLE_COLUMNS:
            logger.debug("Unknown sort key, falling back to date", value=self.sort_by)
            self.sort_by = DEFAULT_SORT_BY
        self.sort_order = "asc" if (self.sort_order or "").lower() == "asc" else "desc"

        if self.types is not None:
            self.types = tuple(t for t in self.types if t in TRANSACTION_TYPES)
            if not self.types:
                self.types = None
        self.include_categories = tuple(c for c in self.include_categories if c)
        self.exclude_categories = tuple(c for c in self.exclude_categories if c)

    @property
    def descending(self) -> bool:
        return self.sort_order == "desc"

    # -- store rendering -------------------------------------------------

    def conditions(self) -> list[ColumnElement[bool]]:
        tx = models.Transaction
        clauses: list[ColumnElement[bool]] = [tx.user_id == self.owner_id]
        if self.type is not None:
            clauses.append(tx.type == self.type)
        if self.types is not None:
            clauses.append(tx.type.in_(self.types))
        if self.category is not None:
            clauses.append(func.lower(tx.category).contains(self.category.lower(), autoescape=True))
        if self.include_categories:
            clauses.append(tx.category.in_(self.include_categories))
        if self.exclude_categories:
            clauses.append(tx.category.not_in(self.exclude_categories))
        if self.start_date is not None:
            clauses.append(tx.date >= self.start_date)
        if self.end_date is not None:
            clauses.append(tx.date <= self.end_date)
        if self.search is not None:
            needle = self.search.lower()
            clauses.append(
                or_(
                    func.lower(tx.description).contains(needle, autoescape=True),
                    func.lower(tx.notes).contains(needle, autoescape=True),
                    func.lower(tx.category).contains(needle, autoescape=True),
                )
            )
        return clauses

    def statement(self) -> Select[tuple[models.Transaction]]:
        column = SORTABLE_COLUMNS[self.sort_by]
        if self.sort_by == "type":
            # native enums order by declaration, the in-memory sort by name
            column = cast(column, String)
        elif self.sort_by in CASE_INSENSITIVE_SORTS:
            column = func.lower(column)
        if self.descending:
            order = (column.desc(), models.Transaction.id.desc())
        else:
            order = (column.asc(), models.Transaction.id.asc())
        return select(models.Transaction).where(and_(*self.conditions())).order_by(*order)

    def count_statement(self) -> Select[tuple[int]]:
        return (
            select(func.count())
            .select_from(models.Transaction)
            .where(and_(*self.conditions()))
        )

    # -- in-memory rendering ---------------------------------------------

    def matches(self, record: Any) -> bool:
        if record.user_id != self.owner_id:
            return False
        if self.type is not None and record.type != self.type:
            return False
        if self.types is not None and record.type not in self.types:
            return False
        if self.category is not None and not _contains(record.category, self.category):
            return False
        if self.include_categories and record.category not in self.include_categories:
            return False
        if self.exclude_categories and record.category in self.exclude_categories:
            return False
        if self.start_date is not None and record.date < self.start_date:
            return False
        if self.end_date is not None and record.date > self.end_date:
            return False
        if self.search is not None and not any(
            _contains(value, self.search)
            for value in (record.description, record.notes, record.category)
        ):
            return False
        return True

    def sort(self, records: Iterable[Any]) -> list[Any]:
        attr = "created_at" if self.sort_by == "createdAt" else self.sort_by

        def key(record: Any) -> tuple[bool, Any, Any]:
            value = getattr(record, attr, None)
            if isinstance(value, str):
                value = value.lower()
            # None sorts last in ascending order
            return (value is None, value if value is not None else 0, record.id)

        return sorted(records, key=key, reverse=self.descending)

    def apply(self, records: Iterable[Any]) -> list[Any]:
        return self.sort(r for r in records if self.matches(r))
