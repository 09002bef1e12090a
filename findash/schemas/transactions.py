import datetime as dt
from typing import Literal, Optional

from pydantic import Field, model_validator

from findash.schemas.common import CamelModel, Pagination

TransactionType = Literal["income", "expense"]

# Numeric(18, 2) holds at most 16 integer digits
MAX_AMOUNT = 10**16


class TransactionBase(CamelModel):
    type: TransactionType
    amount: float = Field(..., ge=0, lt=MAX_AMOUNT, allow_inf_nan=False)
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    date: dt.date
    notes: str = ""
    tags: list[str] = Field(default_factory=list)


class TransactionCreate(TransactionBase):
    pass


class TransactionUpdate(CamelModel):
    """Partial update: fields left out of the request body keep their stored value."""

    type: Optional[TransactionType] = None
    amount: Optional[float] = Field(None, ge=0, lt=MAX_AMOUNT, allow_inf_nan=False)
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1)
    date: Optional[dt.date] = None
    notes: Optional[str] = None
    tags: Optional[list[str]] = None

    @model_validator(mode="after")
    def reject_null_required(self) -> "TransactionUpdate":
        for name in ("type", "amount", "description", "category", "date"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict[str, object]:
        data = self.model_dump(exclude_unset=True)
        if "notes" in data and data["notes"] is None:
            data["notes"] = ""
        if "tags" in data and data["tags"] is None:
            data["tags"] = []
        return data


class Transaction(TransactionBase):
    id: int
    user_id: int
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class TransactionList(CamelModel):
    transactions: list[Transaction]
    pagination: Pagination


class TypeStat(CamelModel):
    type: TransactionType
    total: float
    count: int
    avg_amount: float


class CategoryStat(CamelModel):
    name: str
    total: float
    count: int


class TypeCategoryStats(CamelModel):
    type: TransactionType
    categories: list[CategoryStat]


class TransactionStats(CamelModel):
    stats: list[TypeStat]
    category_stats: list[TypeCategoryStats]


def transaction_to_schema(tx) -> Transaction:
    """Build the API representation of a stored transaction row."""
    return Transaction(
        id=tx.id,
        user_id=tx.user_id,
        type=tx.type,
        amount=float(tx.amount),
        description=tx.description,
        category=tx.category,
        date=tx.date,
        notes=tx.notes or "",
        tags=list(tx.tags or []),
        created_at=tx.created_at,
        updated_at=tx.updated_at,
    )
