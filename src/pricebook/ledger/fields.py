"""Write inputs for the price ledger.

``PriceUpdate`` distinguishes three states per field: ``UNSET`` (leave the
column alone), ``None`` (clear a nullable column) and a concrete value.
"""

import uuid
from dataclasses import dataclass, fields
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Iterator, Optional, Union

from pricebook.domain.enums import PriceCondition, PriceSourceType


class _Unset(Enum):
    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset.UNSET

# Columns that accept an explicit None on update
NULLABLE_FIELDS = frozenset({"source_url_id", "source_note", "note"})


@dataclass
class PriceCreate:
    condition: PriceCondition
    amount: Decimal
    currency: str
    source_type: PriceSourceType = PriceSourceType.MANUAL
    source_url_id: Optional[uuid.UUID] = None
    source_note: Optional[str] = None
    note: Optional[str] = None
    observed_at: Optional[datetime] = None  # None = creation time
    is_primary: bool = False


@dataclass
class PriceUpdate:
    condition: Union[PriceCondition, _Unset] = UNSET
    amount: Union[Decimal, _Unset] = UNSET
    currency: Union[str, _Unset] = UNSET
    source_type: Union[PriceSourceType, _Unset] = UNSET
    source_url_id: Union[uuid.UUID, None, _Unset] = UNSET
    source_note: Union[str, None, _Unset] = UNSET
    note: Union[str, None, _Unset] = UNSET
    observed_at: Union[datetime, _Unset] = UNSET
    is_primary: Union[bool, _Unset] = UNSET

    def is_set(self, name: str) -> bool:
        return getattr(self, name) is not UNSET

    def present(self) -> Iterator[tuple[str, Any]]:
        """Yield (field, value) for every field the caller supplied, None included."""
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not UNSET:
                yield f.name, value

    def is_empty(self) -> bool:
        return next(self.present(), None) is None
