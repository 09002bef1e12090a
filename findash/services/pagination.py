from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from findash.schemas.common import Pagination

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
# keeps offset = (page - 1) * limit inside a signed 64-bit integer
MAX_PAGE_VALUE = 2**31 - 1

T = TypeVar("T")


def coerce_positive_int(value: Any, default: int) -> int:
    """Parse ``value`` as a positive integer, using ``default`` for anything else.

    Values above :data:`MAX_PAGE_VALUE` are clamped to it.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        number = int(str(value).strip())
    except ValueError:
        return default
    if number < 1:
        return default
    return min(number, MAX_PAGE_VALUE)


@dataclass(frozen=True)
class PageRequest:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @classmethod
    def from_params(cls, page: Any = None, limit: Any = None) -> "PageRequest":
        return cls(
            page=coerce_positive_int(page, DEFAULT_PAGE),
            limit=coerce_positive_int(limit, DEFAULT_LIMIT),
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def meta(self, total_items: int) -> Pagination:
        return Pagination(
            current_page=self.page,
            total_pages=math.ceil(total_items / self.limit),
            total_items=total_items,
            items_per_page=self.limit,
        )

    def slice(self, items: Sequence[T]) -> list[T]:
        return list(items[self.offset : self.offset + self.limit])


def paginate(items: Sequence[T], request: PageRequest) -> tuple[list[T], Pagination]:
    """Slice an already filtered and sorted sequence; pages past the end are empty."""
    return request.slice(items), request.meta(len(items))
