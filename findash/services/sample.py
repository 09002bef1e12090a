from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path

from loguru import logger
from pydantic import TypeAdapter

from findash.schemas.transactions import Transaction

# Sample rows belong to this pseudo-owner so they still go through owner scoping
SAMPLE_OWNER_ID = 0

_adapter = TypeAdapter(list[Transaction])


@lru_cache
def load_sample_transactions(path: Path) -> tuple[Transaction, ...]:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    records = _adapter.validate_python(raw)
    logger.debug("Loaded sample transactions", path=str(path), count=len(records))
    return tuple(records)
